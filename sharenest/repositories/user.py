"""
User repository for authentication and account management.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sharenest.repositories.base import BaseRepository
from sharenest.models.user import User, UserRole
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user accounts.
    Passwords are hashed here; raw passwords never reach the ORM layer.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email normalization and password hashing.

        Args:
            user_data: Must include email, password, first_name, last_name.
                       Optional: role (defaults to TENANT), phone, bio.

        Returns:
            Created user instance

        Raises:
            ValueError: If the email is taken or validation fails
        """
        email = User.validate_email_format(user_data["email"])

        if await self.get_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        create_data = {
            **user_data,
            "email": email,
            "hashed_password": User.hash_password(user_data["password"]),
            "role": user_data.get("role") or UserRole.TENANT,
            "is_active": user_data.get("is_active", True),
        }
        create_data.pop("password")

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (case-insensitive) email address."""
        normalized_email = email.lower().strip()
        result = await self.db.execute(select(User).where(User.email == normalized_email))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        normalized_email = email.lower().strip()
        result = await self.db.execute(select(User.id).where(User.email == normalized_email).limit(1))
        return result.first() is not None

    async def get_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        """Find the user holding a password reset token digest."""
        result = await self.db.execute(select(User).where(User.reset_token_hash == token_hash))
        return result.scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.is_active:
            logger.debug(f"Authentication failed: user {email} is inactive")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def update_password(self, user: User, new_password: str) -> User:
        """
        Replace the password hash and revoke outstanding refresh and reset tokens.

        Raises:
            ValueError: If the new password is too short
        """
        updated = await self.update(user, {
            "hashed_password": User.hash_password(new_password),
            "refresh_token_hash": None,
            "reset_token_hash": None,
            "reset_token_expires_at": None,
        })
        logger.info(f"Password updated for user: {updated.email}")
        return updated
