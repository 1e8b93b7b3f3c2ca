"""Configuration settings and environment variables.

This module loads values from environment variables (including a .env file)
and provides small helpers to safely parse integers, booleans and lists while
stripping inline comments. This avoids crashes when a .env value contains
an inline comment like:

    EXPORT_BATCH_SIZE=500 # rows fetched per cursor batch

The helpers fall back to defaults and emit warnings when parsing fails.
"""

import os
import logging
from datetime import timedelta
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_logger = logging.getLogger(__name__)


def _strip_inline_comment(val: str) -> str:
    """Strip an inline comment from a string and trim whitespace/quotes.

    Example: "500 # rows per batch" -> "500"
    """
    if val is None:
        return ''
    val = val.split('#', 1)[0]
    val = val.strip()
    if (val.startswith('"') and val.endswith('"')) or (
        val.startswith("'") and val.endswith("'")
    ):
        val = val[1:-1]
    return val


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    stripped = _strip_inline_comment(raw)
    return stripped if stripped != '' else default


def _get_int_env(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (ValueError, TypeError):
        _logger.warning("Invalid integer for %s: %r, falling back to %s", name, raw, default)
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = _get_env(name)
    if raw is None:
        return default
    return raw.lower() in ['true', '1', 'on', 'yes']


def _get_list_env(name: str, default: List[str]) -> List[str]:
    """Parse a comma separated value, e.g. "administrator, gestor"."""
    raw = _get_env(name)
    if raw is None:
        return list(default)
    items = [item.strip() for item in raw.split(',') if item.strip()]
    if not items:
        _logger.warning("Empty list for %s, falling back to %s", name, default)
        return list(default)
    return items


class Config:
    """Base configuration class with default settings."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    LOG_LEVEL = _get_env('LOG_LEVEL', 'INFO')

    # JWT settings. Cookies are accepted so the landing page links work from a browser.
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_TOKEN_LOCATION = _get_list_env('JWT_TOKEN_LOCATION', ['headers', 'cookies'])
    JWT_COOKIE_CSRF_PROTECT = _get_bool_env('JWT_COOKIE_CSRF_PROTECT', True)

    # MongoDB settings
    MONGO_URI = os.environ.get('MONGO_URI') or 'mongodb://localhost:27017/'
    MONGO_DB = os.environ.get('MONGO_DB') or 'formulari'

    # Export settings
    EXPORT_COLLECTION = _get_env('EXPORT_COLLECTION', 'nou_formulari_dades_formulari')
    EXPORT_ALLOWED_ROLES = _get_list_env('EXPORT_ALLOWED_ROLES', ['administrator', 'gestor'])
    EXPORT_INCLUDE_ID = _get_bool_env('EXPORT_INCLUDE_ID', True)
    EXPORT_BATCH_SIZE = _get_int_env('EXPORT_BATCH_SIZE', 500)
    EXPORT_SHEET_TITLE = _get_env('EXPORT_SHEET_TITLE', 'Dades')

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI') or 'memory://'
    EXPORT_RATE_LIMIT = _get_env('EXPORT_RATE_LIMIT', '30 per hour')


class DevelopmentConfig(Config):
    """Development configuration with debug mode enabled."""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration with security settings."""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration with test database."""
    TESTING = True
    MONGO_DB = 'formulari_test'
    RATELIMIT_ENABLED = False
    JWT_COOKIE_CSRF_PROTECT = False


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
