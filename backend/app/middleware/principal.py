"""Caller resolution for the export routes.

Reads the JWT (header or cookie) when one is present and hands the resulting
principal to the view. Anonymous callers are not rejected here: role checks
belong to the export operations, which answer 403 for any caller without an
export role.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable

from flask_jwt_extended import get_jwt, verify_jwt_in_request

from backend.app.services.exports.authorization import ANONYMOUS, Principal, principal_from_claims

logger = logging.getLogger(__name__)


def current_principal() -> Principal:
    """Principal for the current request, anonymous when no token is sent."""
    if verify_jwt_in_request(optional=True) is None:
        return ANONYMOUS
    return principal_from_claims(get_jwt())


def with_principal(func: Callable[..., Any]) -> Callable[..., Any]:
    """Pass the resolved caller to the view as the ``principal`` keyword."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        principal = current_principal()
        logger.debug(
            "Resolved export caller",
            extra={"user_id": principal.user_id, "endpoint": func.__name__},
        )
        return func(*args, principal=principal, **kwargs)

    return wrapper
