"""
Review repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc
from sharenest.repositories.base import BaseRepository
from sharenest.models.property import Property
from sharenest.models.review import Review
from typing import List, Optional, Tuple
import uuid


class ReviewRepository(BaseRepository[Review]):
    """Repository for property reviews."""

    def __init__(self, db: AsyncSession):
        super().__init__(Review, db)

    async def get_by_reviewer_and_property(
        self,
        reviewer_id: uuid.UUID,
        property_id: uuid.UUID
    ) -> Optional[Review]:
        result = await self.db.execute(
            select(Review).where(
                and_(Review.reviewer_id == reviewer_id, Review.property_id == property_id)
            )
        )
        return result.scalar_one_or_none()

    async def list_for_property(self, property_id: uuid.UUID) -> List[Review]:
        result = await self.db.execute(
            select(Review)
            .where(Review.property_id == property_id)
            .order_by(desc(Review.created_at))
        )
        return list(result.scalars().all())

    async def rating_summary(self, property_id: uuid.UUID) -> Tuple[Optional[float], int]:
        """Average rating (None without reviews) and review count."""
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id))
            .where(Review.property_id == property_id)
        )
        average, count = result.one()
        return (round(float(average), 2) if average is not None else None), count

    async def list_for_owner(self, owner_id: uuid.UUID) -> List[Review]:
        """Reviews left on any property of a landlord, newest first."""
        result = await self.db.execute(
            select(Review)
            .join(Property, Property.id == Review.property_id)
            .where(Property.owner_id == owner_id)
            .order_by(desc(Review.created_at))
        )
        return list(result.scalars().all())

    async def owner_rating_summary(self, owner_id: uuid.UUID) -> Tuple[Optional[float], int]:
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id))
            .join(Property, Property.id == Review.property_id)
            .where(Property.owner_id == owner_id)
        )
        average, count = result.one()
        return (round(float(average), 2) if average is not None else None), count
