"""
Pydantic schemas for request/response validation.
"""

from .auth import (
    LoginRequest,
    LoginResponse,
    TokenResponse,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
)
from .user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserPublicResponse,
    PasswordChangeRequest,
)
from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchParams,
)
from .image import PropertyImageResponse, ImageUploadResponse
from .booking import (
    BookingCreate,
    BookingStatusUpdate,
    BookingResponse,
    BookingListResponse,
)
from .review import (
    ReviewCreate,
    ReviewResponse,
    PropertyReviewsResponse,
    PendingReview,
)
from .error import APIErrorResponse, ErrorResponse, ErrorDetail

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "TokenResponse",
    "RefreshTokenRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserPublicResponse",
    "PasswordChangeRequest",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertySearchParams",
    "PropertyImageResponse",
    "ImageUploadResponse",
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingResponse",
    "BookingListResponse",
    "ReviewCreate",
    "ReviewResponse",
    "PropertyReviewsResponse",
    "PendingReview",
    "APIErrorResponse",
    "ErrorResponse",
    "ErrorDetail",
]
