"""
Utility modules for the ShareNest API.
"""

from .auth import (
    Actor,
    TokenPayload,
    create_access_token,
    create_refresh_token,
    verify_token,
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    BadRequestError,
    booking_error_to_exception,
)

__all__ = [
    "Actor",
    "TokenPayload",
    "create_access_token",
    "create_refresh_token",
    "verify_token",
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "booking_error_to_exception",
]
