"""
FastAPI dependency injection utilities for authentication, services and collaborators.
Provides reusable dependencies for route protection and user extraction.
"""

from datetime import date
from typing import Callable, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sharenest.database import get_db
from sharenest.models.user import User, UserRole
from sharenest.services.auth import AuthService
from sharenest.services.booking import BookingService
from sharenest.services.booking_rules import utc_today
from sharenest.services.image import ImageService
from sharenest.services.notifications import Notifier, LoggingNotifier
from sharenest.services.property import PropertyService
from sharenest.services.review import ReviewService
from sharenest.services.user import UserService
from sharenest.utils.auth import ACCESS_TOKEN, Actor, JWTError, verify_token
from sharenest.utils.exceptions import InsufficientPermissionsError, UnauthorizedError


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_notifier(request: Request) -> Notifier:
    """Notifier created at application startup."""
    notifier = getattr(request.app.state, "notifier", None)
    return notifier or LoggingNotifier()


def get_clock() -> Callable[[], date]:
    """Source of the current UTC date."""
    return utc_today


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
) -> AuthService:
    return AuthService(db, notifier)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


async def get_image_service(db: AsyncSession = Depends(get_db)) -> ImageService:
    return ImageService(db)


async def get_booking_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    clock: Callable[[], date] = Depends(get_clock)
) -> BookingService:
    return BookingService(db, notifier, clock=clock)


async def get_review_service(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], date] = Depends(get_clock)
) -> ReviewService:
    return ReviewService(db, clock=clock)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token is provided
        InvalidTokenError: If the token is invalid
        TokenExpiredError: If the token is expired
        InactiveUserError: If the account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Current user when a valid token is sent, otherwise None.
    Public endpoints use this to show owners their own inactive listings.
    """
    if not credentials:
        return None
    return await auth_service.get_current_user(credentials.credentials)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    current_user: User = Depends(get_current_user)
) -> Actor:
    """
    The caller as an id and role set.
    Roles come from the token claims, falling back to the stored role.
    """
    try:
        payload = verify_token(credentials.credentials, token_type=ACCESS_TOKEN)
    except JWTError:
        return Actor.from_user(current_user)
    return Actor(id=current_user.id, roles=payload.roles or {current_user.role})


def require_roles(*roles: UserRole):
    """
    Create a dependency that requires the actor to hold one of the given roles.

    Args:
        roles: Accepted roles

    Returns:
        Dependency function resolving to the Actor
    """
    async def role_dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not any(actor.has_role(role) for role in roles):
            names = " or ".join(role.value for role in roles)
            raise InsufficientPermissionsError(f"access {names} resources")
        return actor

    return role_dependency
