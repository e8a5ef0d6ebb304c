"""
Repository for PropertyImage model operations.
"""

import logging
import uuid
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharenest.models.image import PropertyImage
from sharenest.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """Images of a property, primary first, then by display order."""
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.is_primary.desc(), PropertyImage.display_order.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def apply_order(self, images: List[PropertyImage]) -> List[PropertyImage]:
        """
        Persist the given sequence as the display order in one commit.
        The first image becomes the primary one.
        """
        for position, image in enumerate(images):
            image.display_order = position
            image.is_primary = position == 0
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to reorder images: {e}")
            raise
        for image in images:
            await self.db.refresh(image)
        return images
