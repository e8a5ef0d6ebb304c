"""
API route handlers for the ShareNest API.
"""

from .auth import router as auth_router
from .users import router as users_router
from .properties import router as properties_router
from .bookings import router as bookings_router
from .reviews import router as reviews_router

__all__ = ["auth_router", "users_router", "properties_router", "bookings_router", "reviews_router"]
