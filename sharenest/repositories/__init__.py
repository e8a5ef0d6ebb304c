"""
Repository layer for data access operations.
"""

from sharenest.repositories.base import BaseRepository
from sharenest.repositories.user import UserRepository
from sharenest.repositories.property import PropertyRepository, PropertySearchFilters, FavoriteRepository
from sharenest.repositories.image import ImageRepository
from sharenest.repositories.booking import BookingRepository
from sharenest.repositories.review import ReviewRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "FavoriteRepository",
    "ImageRepository",
    "BookingRepository",
    "ReviewRepository",
]
