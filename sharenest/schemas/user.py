"""
Pydantic schemas for user requests and responses.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
import uuid
from sharenest.models.user import UserRole


def validate_password_strength(v: str) -> str:
    """At least 8 characters with one letter and one number."""
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not any(c.isalpha() for c in v):
        raise ValueError("Password must contain at least one letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one number")
    return v


def clean_name(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Name cannot be empty")
    return v.strip()


class UserCreate(BaseModel):
    """Schema for registering a new user."""

    email: EmailStr = Field(..., description="User's email address", examples=["tenant@example.com"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password with at least one letter and one number",
        examples=["securepassword123"]
    )
    first_name: str = Field(..., min_length=1, max_length=100, examples=["Jane"])
    last_name: str = Field(..., min_length=1, max_length=100, examples=["Doe"])
    role: UserRole = Field(UserRole.TENANT, description="tenant or landlord")
    phone: Optional[str] = Field(None, max_length=32, examples=["+49 30 1234567"])

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v):
        return clean_name(v)


class UserUpdate(BaseModel):
    """Profile fields a user may change."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    bio: Optional[str] = Field(None, max_length=2000)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v):
        if v is None:
            return v
        return clean_name(v)


class UserResponse(BaseModel):
    """Schema for user response data."""

    id: uuid.UUID
    email: EmailStr
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: UserRole
    is_active: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserPublicResponse(BaseModel):
    """Profile visible to other users. Contact details are left out."""

    id: uuid.UUID
    first_name: str
    last_name: str
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PasswordChangeRequest(BaseModel):
    """Schema for password change request."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128, examples=["newpassword123"])
    confirm_password: str = Field(..., min_length=8, max_length=128, examples=["newpassword123"])

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v):
        return validate_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
