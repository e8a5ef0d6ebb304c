"""
User profile endpoints.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from uuid import UUID
from sharenest.models.user import User
from sharenest.services.user import UserService
from sharenest.schemas.auth import MessageResponse
from sharenest.schemas.user import PasswordChangeRequest, UserPublicResponse, UserResponse, UserUpdate
from sharenest.schemas.error import get_common_error_responses
from sharenest.utils.dependencies import get_current_user, get_user_service


router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse, responses=get_common_error_responses(401))
async def get_my_profile(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update profile",
    responses=get_common_error_responses(401, 422)
)
async def update_my_profile(
    profile_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    user = await user_service.update_profile(current_user, profile_data)
    return UserResponse.model_validate(user)


@router.post(
    "/me/profile-image",
    response_model=UserResponse,
    summary="Upload profile image",
    description="JPEG, PNG or WebP. Replaces any previous image.",
    responses=get_common_error_responses(400, 401, 422)
)
async def upload_profile_image(
    file: UploadFile = File(..., description="Image file"),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    user = await user_service.update_profile_image(current_user, file)
    return UserResponse.model_validate(user)


@router.post(
    "/me/change-password",
    response_model=MessageResponse,
    summary="Change password",
    description="Requires the current password. Signs out other sessions by revoking the refresh token.",
    responses=get_common_error_responses(400, 401, 422)
)
async def change_password(
    password_data: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
) -> MessageResponse:
    await user_service.change_password(current_user, password_data)
    return MessageResponse(message="Password changed successfully")


@router.get(
    "/{user_id}",
    response_model=UserPublicResponse,
    summary="Public profile",
    responses=get_common_error_responses(404)
)
async def get_public_profile(
    user_id: UUID,
    user_service: UserService = Depends(get_user_service)
) -> UserPublicResponse:
    user = await user_service.get_public_profile(user_id)
    return UserPublicResponse.model_validate(user)
