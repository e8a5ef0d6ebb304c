"""
Database models for the ShareNest API.
Includes users, properties with their images, bookings, reviews and favorites.
"""

from sharenest.models.user import User, UserRole
from sharenest.models.property import Property, PropertyCategory
from sharenest.models.image import PropertyImage
from sharenest.models.booking import Booking, BookingStatus, BLOCKING_STATUSES
from sharenest.models.review import Review, Favorite

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyCategory",
    "PropertyImage",
    "Booking",
    "BookingStatus",
    "BLOCKING_STATUSES",
    "Review",
    "Favorite",
]
