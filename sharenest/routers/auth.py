"""
Authentication API endpoints for registration, login and token management.
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import EmailStr
from sharenest.config import settings
from sharenest.models.user import User
from sharenest.services.auth import AuthService
from sharenest.schemas.auth import (
    EmailAvailabilityResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshTokenRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from sharenest.schemas.user import UserCreate, UserResponse
from sharenest.schemas.error import get_common_error_responses
from sharenest.utils.dependencies import get_auth_service, get_current_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(access_token: str, refresh_token: str) -> TokenResponse:
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create a tenant or landlord account and send a verification email",
    responses=get_common_error_responses(409, 422)
)
async def register(
    user_data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.register(user_data)
    return UserResponse.model_validate(user)


@router.get(
    "/check-email",
    response_model=EmailAvailabilityResponse,
    summary="Check email",
    description="Whether an account already uses the address",
    responses=get_common_error_responses(422)
)
async def check_email(
    email: EmailStr = Query(..., description="Address to look up"),
    auth_service: AuthService = Depends(get_auth_service)
) -> EmailAvailabilityResponse:
    normalized = email.lower().strip()
    return EmailAvailabilityResponse(email=normalized, exists=await auth_service.email_exists(normalized))


@router.get(
    "/verify-email",
    response_model=MessageResponse,
    summary="Verify email address",
    responses=get_common_error_responses(401)
)
async def verify_email(
    token: str = Query(..., min_length=1, description="Token from the verification link"),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.verify_email(token)
    return MessageResponse(message="Email verified successfully")


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate with email and password, returns JWT tokens",
    responses=get_common_error_responses(401, 422)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid or the account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )
    return LoginResponse(
        user=UserResponse.model_validate(user),
        tokens=_token_response(access_token, refresh_token)
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Rotate refresh token",
    description="Exchange a refresh token for a new token pair; the old refresh token stops working",
    responses=get_common_error_responses(401)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> TokenResponse:
    _, access_token, new_refresh_token = await auth_service.refresh(refresh_data.refresh_token)
    return _token_response(access_token, new_refresh_token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Revoke the current refresh token",
    responses=get_common_error_responses(401)
)
async def logout(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.logout(current_user)
    return MessageResponse(message="Successfully logged out")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset",
    description="Always succeeds; a reset link is mailed when the address is registered"
)
async def forgot_password(
    request_data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.forgot_password(request_data.email)
    return MessageResponse(message="If the email is registered, a password reset link has been sent")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password",
    responses=get_common_error_responses(400, 422)
)
async def reset_password(
    request_data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.reset_password(request_data.token, request_data.password)
    return MessageResponse(message="Password has been reset successfully")


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    responses=get_common_error_responses(401)
)
async def get_current_user_info(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
