"""Database connection and utility functions for MongoDB.

This module provides a centralized MongoDB client with connection management
and error handling for the form data export service. The client is created
lazily per application context and closed on teardown.
"""

from __future__ import annotations

import logging
from typing import Optional
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from flask import current_app, g

logger = logging.getLogger(__name__)

class DatabaseError(Exception):
    """Custom exception for database-related errors."""
    pass

def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client instance.

    Returns:
        MongoClient: Configured MongoDB client instance

    Raises:
        DatabaseError: If connection cannot be established
    """
    if 'mongo_client' not in g:
        try:
            mongo_uri = current_app.config['MONGO_URI']
            g.mongo_client = MongoClient(
                mongo_uri,
                serverSelectionTimeoutMS=5000,  # 5 second timeout
                connectTimeoutMS=10000,         # 10 second connection timeout
                socketTimeoutMS=60000,          # exports may hold a cursor open for a while
                maxPoolSize=50,
            )

            g.mongo_client.admin.command('ping')
            logger.info("MongoDB connection established successfully")

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            g.pop('mongo_client', None)
            raise DatabaseError(f"Database connection failed: {e}") from e
        except Exception as e:
            g.pop('mongo_client', None)
            raise DatabaseError(f"Unexpected database error: {e}") from e

    return g.mongo_client


def get_db() -> Database:
    """Get database instance for the current application.

    Returns:
        Database: MongoDB database instance

    Raises:
        DatabaseError: If database connection fails
    """
    client = get_mongo_client()
    db_name = current_app.config['MONGO_DB']
    return client[db_name]


def close_db(error: Optional[Exception] = None) -> None:
    """Close database connection if it exists.

    Args:
        error: Optional exception that caused the close (for logging)
    """
    mongo_client = g.pop('mongo_client', None)

    if mongo_client is not None:
        try:
            mongo_client.close()
            if error:
                logger.warning(f"Database connection closed due to error: {error}")
            else:
                logger.debug("Database connection closed successfully")
        except Exception as e:
            logger.error(f"Error closing database connection: {e}")


def init_app(app) -> None:
    """Register the teardown handler that closes the per-context client.

    The connection itself is opened on first use so the app can start while
    the database is temporarily unavailable.
    """
    app.teardown_appcontext(close_db)


def health_check() -> dict:
    """Perform database health check.

    Returns:
        dict: Health check results with status and details
    """
    try:
        client = get_mongo_client()
        db = get_db()

        client.admin.command('ping')
        server_info = client.server_info()
        export_collection = current_app.config['EXPORT_COLLECTION']

        return {
            'status': 'healthy',
            'database': current_app.config['MONGO_DB'],
            'server_version': server_info.get('version', 'unknown'),
            'export_collection': export_collection,
            'export_collection_exists': export_collection in db.list_collection_names(),
            'message': 'Database connection is operational'
        }

    except DatabaseError as e:
        logger.warning(f"Health check could not reach the database: {e}")
        return {
            'status': 'unhealthy',
            'error': str(e),
            'message': 'Database connection failed'
        }
    except Exception as e:
        logger.error(f"Health check failed with unexpected error: {e}")
        return {
            'status': 'unhealthy',
            'error': f"Unexpected error: {str(e)}",
            'message': 'Database health check failed'
        }
