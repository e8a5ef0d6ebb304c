"""
Service layer for business logic implementation.
Contains the booking workflow, accounts, listings, reviews, notifications and error handling.
"""

from .auth import AuthService
from .user import UserService
from .property import PropertyService
from .image import ImageService
from .booking import BookingService
from .review import ReviewService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "UserService",
    "PropertyService",
    "ImageService",
    "BookingService",
    "ReviewService",
    "ErrorHandlerService",
]
