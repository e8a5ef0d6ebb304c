"""
Authentication utilities for JWT token management.
Provides access, refresh and email verification tokens, token digests,
and the authenticated actor abstraction.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, FrozenSet, Iterable
from jose import JWTError, ExpiredSignatureError, jwt
from sharenest.config import settings
from sharenest.models.user import User, UserRole
import hashlib
import secrets
import uuid


ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
VERIFY_TOKEN = "verify"


def normalize_roles(claims: Dict[str, Any]) -> FrozenSet[UserRole]:
    """
    Collect roles from either a singular ``role`` claim or a plural ``roles`` list.
    Unknown role names are ignored.
    """
    raw = claims.get("roles")
    if raw is None:
        raw = claims.get("role")
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        raw = [raw]

    roles = set()
    for value in raw:
        try:
            roles.add(UserRole(str(value).lower()))
        except ValueError:
            continue
    return frozenset(roles)


class Actor:
    """The authenticated caller: an id and a set of roles."""

    def __init__(self, id: uuid.UUID, roles: Iterable[UserRole]):
        self.id = id
        self.roles = frozenset(roles)

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, roles={user.role})

    def has_role(self, role: UserRole) -> bool:
        return role in self.roles

    @property
    def is_landlord(self) -> bool:
        return UserRole.LANDLORD in self.roles

    @property
    def is_tenant(self) -> bool:
        return UserRole.TENANT in self.roles

    def __repr__(self) -> str:
        return f"<Actor(id={self.id}, roles={sorted(r.value for r in self.roles)})>"


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, email: str, roles: FrozenSet[UserRole], token_type: str, exp: datetime):
        self.user_id = user_id
        self.email = email
        self.roles = roles
        self.token_type = token_type
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from decoded claims."""
        return cls(
            user_id=data["sub"],
            email=data["email"],
            roles=normalize_roles(data),
            token_type=data.get("type", ACCESS_TOKEN),
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )

    def to_actor(self) -> Actor:
        return Actor(id=uuid.UUID(self.user_id), roles=self.roles)


def _encode(claims: Dict[str, Any], expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: uuid.UUID, email: str, role: UserRole,
                        expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token with user claims.

    Args:
        user_id: User's UUID
        email: User's email address
        role: User's role (tenant/landlord)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    return _encode(
        {"sub": str(user_id), "email": email, "role": role.value, "type": ACCESS_TOKEN},
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )


def create_refresh_token(user_id: uuid.UUID, email: str,
                         expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT refresh token.
    Each token carries a unique jti so rotation always yields a new digest.
    """
    return _encode(
        {"sub": str(user_id), "email": email, "type": REFRESH_TOKEN, "jti": uuid.uuid4().hex},
        expires_delta or timedelta(days=settings.refresh_token_expire_days)
    )


def create_verification_token(user_id: uuid.UUID, email: str) -> str:
    """Create the token embedded in the email verification link."""
    return _encode(
        {"sub": str(user_id), "email": email, "type": VERIFY_TOKEN},
        timedelta(hours=settings.email_verification_expire_hours)
    )


def verify_token(token: str, token_type: str = ACCESS_TOKEN) -> TokenPayload:
    """
    Verify and decode JWT token.

    Args:
        token: JWT token string
        token_type: Expected token type ("access", "refresh" or "verify")

    Returns:
        TokenPayload of the valid token

    Raises:
        ExpiredSignatureError: If the token has expired
        JWTError: If the token is malformed, forged or of another type
    """
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    if payload.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")

    if not payload.get("sub") or not payload.get("email"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)


def token_digest(token: str) -> str:
    """
    SHA-256 hex digest of a token.
    Only digests are persisted; bcrypt truncates input beyond 72 bytes.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> str:
    """Random URL-safe password reset token."""
    return secrets.token_urlsafe(32)


__all__ = [
    "Actor",
    "TokenPayload",
    "ExpiredSignatureError",
    "JWTError",
    "create_access_token",
    "create_refresh_token",
    "create_verification_token",
    "verify_token",
    "token_digest",
    "generate_reset_token",
    "normalize_roles",
]
