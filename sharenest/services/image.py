"""
Image service for property photo uploads.
"""

from typing import List, Optional
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sharenest.config import settings
from sharenest.models.image import PropertyImage
from sharenest.models.user import User
from sharenest.repositories.image import ImageRepository
from sharenest.repositories.property import PropertyRepository
from sharenest.utils.exceptions import (
    BadRequestError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    ResourceLimitExceededError,
)
from sharenest.utils.file_utils import FileStorage, ImageValidator
import uuid
import logging

logger = logging.getLogger(__name__)


class ImageService:
    """Uploads, lists and removes images of a property."""

    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.image_repo = ImageRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.storage = storage or FileStorage()

    async def _get_owned_property(self, property_id: uuid.UUID, current_user: User):
        property_obj = await self.property_repo.get_by_id(property_id)
        if property_obj is None:
            raise PropertyNotFoundError()
        if not property_obj.is_owned_by(current_user.id):
            raise PropertyOwnershipError()
        return property_obj

    async def upload_images(
        self,
        property_id: uuid.UUID,
        files: List[UploadFile],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Validate and store a batch of images.

        All files are validated before anything is written. The first image
        of a property without images becomes the primary one.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            PropertyOwnershipError: If the caller is not the owner
            ResourceLimitExceededError: If the batch would exceed the per-property limit
            FileUploadError: If any file is not an acceptable image
        """
        await self._get_owned_property(property_id, current_user)

        existing = await self.image_repo.get_by_property_id(property_id)
        limit = settings.max_images_per_property
        if len(existing) + len(files) > limit:
            raise ResourceLimitExceededError("images per property", limit)

        uploads = [await ImageValidator.validate_upload(file) for file in files]

        has_primary = any(image.is_primary for image in existing)
        next_order = max((image.display_order for image in existing), default=-1) + 1

        created = []
        for offset, upload in enumerate(uploads):
            relative_path = self.storage.property_image_path(property_id, upload.filename)
            await self.storage.save(relative_path, upload.content)
            try:
                image = await self.image_repo.create({
                    "property_id": property_id,
                    "filename": upload.filename,
                    "file_path": relative_path,
                    "file_size": upload.size,
                    "mime_type": upload.mime_type,
                    "width": upload.width,
                    "height": upload.height,
                    "is_primary": not has_primary and offset == 0,
                    "display_order": next_order + offset,
                })
            except Exception:
                self.storage.delete(relative_path)
                raise
            created.append(image)

        logger.info(f"Uploaded {len(created)} images to property {property_id} by {current_user.email}")
        return created

    async def list_images(self, property_id: uuid.UUID) -> List[PropertyImage]:
        if await self.property_repo.get_by_id(property_id) is None:
            raise PropertyNotFoundError()
        return await self.image_repo.get_by_property_id(property_id)

    async def delete_image(self, property_id: uuid.UUID, image_id: uuid.UUID, current_user: User) -> None:
        """
        Delete one image. If it was primary, the next image in order takes over.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            PropertyOwnershipError: If the caller is not the owner
            NotFoundError: If the image doesn't belong to the property
        """
        await self._get_owned_property(property_id, current_user)

        image = await self.image_repo.get_by_id(image_id)
        if image is None or image.property_id != property_id:
            raise NotFoundError("Image not found", error_code="IMAGE_NOT_FOUND")

        was_primary = image.is_primary
        file_path = image.file_path
        await self.image_repo.delete(image)

        if not self.storage.delete(file_path):
            logger.warning(f"Image file already missing: {file_path}")

        if was_primary:
            remaining = await self.image_repo.get_by_property_id(property_id)
            if remaining:
                await self.image_repo.update(remaining[0], {"is_primary": True})

        logger.info(f"Image {image_id} deleted from property {property_id}")

    async def reorder_images(
        self,
        property_id: uuid.UUID,
        image_ids: List[uuid.UUID],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Rearrange the images of a property. The first id becomes the primary image.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            PropertyOwnershipError: If the caller is not the owner
            BadRequestError: If the ids are not exactly the property's images
        """
        await self._get_owned_property(property_id, current_user)

        images = {image.id: image for image in await self.image_repo.get_by_property_id(property_id)}
        if len(set(image_ids)) != len(image_ids) or set(image_ids) != set(images):
            raise BadRequestError(
                "image_ids must list every image of the property exactly once",
                error_code="INVALID_IMAGE_ORDER"
            )

        ordered = await self.image_repo.apply_order([images[image_id] for image_id in image_ids])
        logger.info(f"Images of property {property_id} reordered by {current_user.email}")
        return ordered
