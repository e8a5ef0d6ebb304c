"""
User profile service.
"""

from typing import Optional
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sharenest.models.user import User
from sharenest.repositories.user import UserRepository
from sharenest.schemas.user import UserUpdate, PasswordChangeRequest
from sharenest.utils.exceptions import BadRequestError, NotFoundError
from sharenest.utils.file_utils import FileStorage, ImageValidator
import uuid
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Profile reads and updates for the current user."""

    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.storage = storage or FileStorage()

    async def get_public_profile(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User not found", error_code="USER_NOT_FOUND")
        return user

    async def update_profile(self, user: User, data: UserUpdate) -> User:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return user
        updated = await self.user_repo.update(user, changes)
        logger.info(f"Profile updated for {updated.email}: {sorted(changes)}")
        return updated

    async def change_password(self, user: User, data: PasswordChangeRequest) -> User:
        """
        Replace the password after checking the current one.
        Existing refresh tokens stop working.
        """
        if not user.verify_password(data.current_password):
            raise BadRequestError("Current password is incorrect", error_code="INVALID_PASSWORD")
        return await self.user_repo.update_password(user, data.new_password)

    async def update_profile_image(self, user: User, file: UploadFile) -> User:
        """
        Validate and store a new avatar, then remove the previous file.

        Raises:
            FileUploadError: If the file is not an acceptable image
        """
        upload = await ImageValidator.validate_upload(file)
        relative_path = self.storage.profile_image_path(user.id, upload.filename)
        await self.storage.save(relative_path, upload.content)

        previous = user.profile_image
        try:
            updated = await self.user_repo.update(user, {"profile_image": relative_path})
        except Exception:
            self.storage.delete(relative_path)
            raise

        if previous is not None:
            self.storage.delete(previous)
        logger.info(f"Profile image updated for {updated.email}")
        return updated
