"""
Authentication service for registration, login and token lifecycle.
Handles refresh token rotation, email verification and password reset.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sharenest.config import settings
from sharenest.repositories.user import UserRepository
from sharenest.models.user import User
from sharenest.schemas.user import UserCreate
from sharenest.services.notifications import AccountNotifications, Notifier, LoggingNotifier
from sharenest.utils.auth import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    VERIFY_TOKEN,
    ExpiredSignatureError,
    JWTError,
    create_access_token,
    create_refresh_token,
    create_verification_token,
    generate_reset_token,
    token_digest,
    verify_token,
)
from sharenest.utils.exceptions import (
    BadRequestError,
    DuplicateResourceError,
    InactiveUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service.
    Only SHA-256 digests of refresh and reset tokens are stored, so a leaked
    database row cannot be replayed as a token.
    """

    def __init__(self, db_session: AsyncSession, notifier: Optional[Notifier] = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.mail = AccountNotifications(notifier or LoggingNotifier(), settings)

    async def register(self, user_data: UserCreate) -> User:
        """
        Create an account and send the verification mail.

        Raises:
            DuplicateResourceError: If the email is already registered
        """
        if await self.user_repo.get_by_email(user_data.email):
            raise DuplicateResourceError(f"User with email '{user_data.email}' already exists")

        user = await self.user_repo.create_user(user_data.model_dump())
        await self.mail.verification(user, create_verification_token(user.id, user.email))
        logger.info(f"Registered {user.role.value} {user.email}")
        return user

    async def email_exists(self, email: str) -> bool:
        """Whether an account is registered under the address, active or not."""
        return await self.user_repo.email_exists(email)

    async def verify_email(self, token: str) -> User:
        """
        Mark the account of a verification token as verified.

        Raises:
            InvalidTokenError: If the token is invalid, expired or unknown
        """
        try:
            payload = verify_token(token, token_type=VERIFY_TOKEN)
        except JWTError:
            raise InvalidTokenError("Invalid or expired verification token")

        user = await self.user_repo.get_by_id(uuid.UUID(payload.user_id))
        if user is None or user.email != payload.email:
            raise InvalidTokenError("Invalid or expired verification token")

        if not user.is_verified:
            user = await self.user_repo.update(user, {"is_verified": True})
            logger.info(f"Email verified for {user.email}")
        return user

    async def _issue_tokens(self, user: User) -> Tuple[str, str]:
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        await self.user_repo.update(user, {
            "refresh_token_hash": token_digest(refresh_token),
            "last_authenticated_at": datetime.now(timezone.utc),
        })
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and issue a fresh token pair.

        Raises:
            InvalidCredentialsError: If credentials are invalid or the account is inactive
        """
        user = await self.user_repo.authenticate_user(email, password)
        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        access_token, refresh_token = await self._issue_tokens(user)
        return user, access_token, refresh_token

    async def refresh(self, refresh_token: str) -> Tuple[User, str, str]:
        """
        Rotate a refresh token. The presented token stops working afterwards.

        Raises:
            TokenExpiredError: If the refresh token has expired
            InvalidTokenError: If it is invalid, revoked or already rotated
        """
        try:
            payload = verify_token(refresh_token, token_type=REFRESH_TOKEN)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(str(e))

        user = await self.user_repo.get_by_id(uuid.UUID(payload.user_id))
        if user is None or user.refresh_token_hash != token_digest(refresh_token):
            logger.warning(f"Rejected stale or revoked refresh token for user {payload.user_id}")
            raise InvalidTokenError("Refresh token has been revoked")

        if not user.is_active:
            raise InactiveUserError()

        access_token, new_refresh_token = await self._issue_tokens(user)
        return user, access_token, new_refresh_token

    async def logout(self, user: User) -> None:
        """Revoke the stored refresh token."""
        await self.user_repo.update(user, {"refresh_token_hash": None})
        logger.info(f"User logged out: {user.email}")

    async def forgot_password(self, email: str) -> None:
        """
        Start a password reset. Silent when the email is unknown so the
        endpoint does not reveal which addresses are registered.
        """
        user = await self.user_repo.get_by_email(email)
        if user is None or not user.is_active:
            logger.info(f"Password reset requested for unknown or inactive email: {email}")
            return

        token = generate_reset_token()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.password_reset_expire_minutes)
        await self.user_repo.update(user, {
            "reset_token_hash": token_digest(token),
            "reset_token_expires_at": expires_at,
        })
        await self.mail.password_reset(user, token)

    async def reset_password(self, token: str, new_password: str) -> User:
        """
        Set a new password from a reset token.

        Raises:
            BadRequestError: If the token is unknown or expired
        """
        user = await self.user_repo.get_by_reset_token_hash(token_digest(token))
        if user is None or user.reset_token_expires_at is None:
            raise BadRequestError("Invalid or expired reset token", error_code="INVALID_RESET_TOKEN")

        expires_at = user.reset_token_expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at < datetime.now(timezone.utc):
            raise BadRequestError("Invalid or expired reset token", error_code="INVALID_RESET_TOKEN")

        return await self.user_repo.update_password(user, new_password)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user of an access token.

        Raises:
            TokenExpiredError: If the token is expired
            InvalidTokenError: If the token is invalid or the user is gone
            InactiveUserError: If the account is inactive
        """
        try:
            payload = verify_token(token, token_type=ACCESS_TOKEN)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(str(e))

        user = await self.user_repo.get_by_id(uuid.UUID(payload.user_id))
        if user is None:
            raise InvalidTokenError("User not found")
        if not user.is_active:
            raise InactiveUserError()
        return user
