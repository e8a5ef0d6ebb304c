"""
Booking repository: overlap candidates and user-scoped listings.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc
from sqlalchemy.orm import selectinload
from sharenest.repositories.base import BaseRepository
from sharenest.models.booking import Booking, BookingStatus, BLOCKING_STATUSES
from sharenest.models.property import Property
from sharenest.models.review import Review
from typing import List, Optional
from datetime import date
import uuid
import logging

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for bookings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Booking, db)

    async def list_blocking_for_property(
        self,
        property_id: uuid.UUID,
        ending_on_or_after: Optional[date] = None
    ) -> List[Booking]:
        """
        Pending and approved bookings of a property.

        Args:
            property_id: Property to inspect
            ending_on_or_after: Skip bookings that ended before this date,
                they cannot overlap a range starting on or after it

        Returns:
            Bookings ordered by start date
        """
        query = select(Booking).where(
            and_(
                Booking.property_id == property_id,
                Booking.status.in_(list(BLOCKING_STATUSES))
            )
        )
        if ending_on_or_after is not None:
            query = query.where(Booking.end_date >= ending_on_or_after)

        result = await self.db.execute(query.order_by(Booking.start_date))
        return list(result.scalars().all())

    async def list_for_tenant(self, tenant_id: uuid.UUID) -> List[Booking]:
        """Bookings requested by a tenant, most recent first."""
        result = await self.db.execute(
            select(Booking)
            .where(Booking.tenant_id == tenant_id)
            .order_by(desc(Booking.created_at))
        )
        return list(result.scalars().all())

    async def list_for_landlord(self, owner_id: uuid.UUID) -> List[Booking]:
        """Bookings on any property owned by the landlord, most recent first."""
        result = await self.db.execute(
            select(Booking)
            .join(Property, Booking.property_id == Property.id)
            .where(Property.owner_id == owner_id)
            .order_by(desc(Booking.created_at))
        )
        return list(result.scalars().all())

    async def has_completed_stay(
        self,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        today: date
    ) -> bool:
        """Whether the tenant has an approved booking of the property that ended before today."""
        result = await self.db.execute(
            select(Booking.id).where(
                and_(
                    Booking.tenant_id == tenant_id,
                    Booking.property_id == property_id,
                    Booking.status == BookingStatus.APPROVED,
                    Booking.end_date < today
                )
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_unreviewed_stays(self, tenant_id: uuid.UUID, today: date) -> List[Booking]:
        """Completed approved stays whose property the tenant has not reviewed yet."""
        reviewed = select(Review.property_id).where(Review.reviewer_id == tenant_id)
        result = await self.db.execute(
            select(Booking)
            .where(
                and_(
                    Booking.tenant_id == tenant_id,
                    Booking.status == BookingStatus.APPROVED,
                    Booking.end_date < today,
                    Booking.property_id.not_in(reviewed)
                )
            )
            .order_by(desc(Booking.end_date))
        )
        return list(result.scalars().all())

    async def get_detailed(self, booking_id: uuid.UUID) -> Optional[Booking]:
        """Booking with its property, the property's owner and the tenant loaded."""
        result = await self.db.execute(
            select(Booking)
            .options(
                selectinload(Booking.property_rel).selectinload(Property.owner),
                selectinload(Booking.tenant)
            )
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
