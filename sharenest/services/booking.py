"""
Booking service: request creation, status transitions, access checks and listings.

Business rule failures are returned as ``Err(BookingError)`` values rather than
raised; the HTTP layer converts them to responses.
"""

from datetime import date, datetime
from typing import Callable, List, Optional, Union
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sharenest.config import settings
from sharenest.models.booking import OVERLAP_CONSTRAINT, Booking, BookingStatus
from sharenest.models.user import UserRole
from sharenest.repositories.booking import BookingRepository
from sharenest.repositories.property import PropertyRepository
from sharenest.services.booking_rules import (
    BOOKING_ACCESS_DENIED,
    BOOKING_NOT_FOUND,
    BOOKING_OVERLAP,
    TRANSITION_FORBIDDEN,
    Err,
    Ok,
    Result,
    authorize_delete,
    authorize_transition,
    can_access,
    normalize_date,
    utc_today,
    validate_booking_request,
)
from sharenest.services.notifications import BookingNotifications, Notifier
from sharenest.utils.auth import Actor

logger = logging.getLogger(__name__)


def is_overlap_violation(error: IntegrityError) -> bool:
    """
    Whether an integrity error was raised by the booking exclusion constraint.
    Drivers expose the constraint name in different places; the message always names it.
    """
    for candidate in (error.orig, getattr(error.orig, "__cause__", None)):
        if candidate is None:
            continue
        name = getattr(candidate, "constraint_name", None)
        if name is None:
            name = getattr(getattr(candidate, "diag", None), "constraint_name", None)
        if name is not None:
            return name == OVERLAP_CONSTRAINT
    return OVERLAP_CONSTRAINT in str(error.orig)


class BookingService:
    """
    Coordinates the booking rules with persistence and notifications.

    Args:
        db_session: Request-scoped database session
        notifier: Outbound message transport
        clock: Returns the current UTC date; injectable for tests
        frontend_url: Base of the deep links placed in mails
    """

    def __init__(
        self,
        db_session: AsyncSession,
        notifier: Notifier,
        clock: Callable[[], date] = utc_today,
        frontend_url: Optional[str] = None
    ):
        self.db = db_session
        self.booking_repo = BookingRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.clock = clock
        self.notifications = BookingNotifications(notifier, frontend_url or settings.frontend_url)

    async def create_booking(
        self,
        actor: Actor,
        property_id: uuid.UUID,
        start_date: Union[date, datetime],
        end_date: Union[date, datetime],
        message: Optional[str] = None
    ) -> Result:
        """
        Validate a booking request and store it as pending.

        The property row is locked for the rest of the transaction so that
        concurrent requests for the same property are checked one at a time.
        On PostgreSQL an exclusion constraint rejects any overlap that still
        slips through; that failure is reported as an overlap as well, while
        any other integrity error propagates.

        Returns:
            Ok(Booking) or Err(BookingError)
        """
        start = normalize_date(start_date)
        end = normalize_date(end_date)

        property_obj = await self.property_repo.get_for_update(property_id)
        blocking: List[Booking] = []
        if property_obj is not None:
            blocking = await self.booking_repo.list_blocking_for_property(property_id, ending_on_or_after=start)

        outcome = validate_booking_request(property_obj, start, end, self.clock(), blocking)
        if not outcome.is_ok:
            logger.warning(
                f"Booking request by {actor.id} for property {property_id} rejected: {outcome.error.code}"
            )
            return outcome

        try:
            booking = await self.booking_repo.create({
                "property_id": property_id,
                "tenant_id": actor.id,
                "start_date": start,
                "end_date": end,
                "status": BookingStatus.PENDING,
                "message": message,
            })
        except IntegrityError as e:
            if not is_overlap_violation(e):
                raise
            logger.warning(f"Booking insert for property {property_id} hit the overlap constraint: {e.orig}")
            return Err(BOOKING_OVERLAP)

        booking = await self.booking_repo.get_detailed(booking.id)
        logger.info(f"Booking {booking.id} created for property {property_id} ({start} to {end})")

        await self.notifications.booking_requested(
            booking, booking.property_rel, booking.tenant, booking.property_rel.owner
        )
        return Ok(booking)

    async def get_booking(self, actor: Actor, booking_id: uuid.UUID) -> Result:
        """
        Fetch one booking visible to the actor.

        Returns:
            Ok(Booking), Err(BOOKING_NOT_FOUND) or Err(BOOKING_ACCESS_DENIED)
        """
        booking = await self.booking_repo.get_detailed(booking_id)
        if booking is None:
            return Err(BOOKING_NOT_FOUND)
        if not can_access(booking, booking.property_rel.owner_id, actor.id):
            return Err(BOOKING_ACCESS_DENIED)
        return Ok(booking)

    async def update_status(self, actor: Actor, booking_id: uuid.UUID, status: BookingStatus) -> Result:
        """
        Move a booking to a new status.

        Only the tenant and the property owner may attempt a change at all;
        the transition rules then decide per target status. Setting the
        current status again is a no-op and sends nothing.

        Returns:
            Ok(Booking) or Err(BookingError)
        """
        booking = await self.booking_repo.get_detailed(booking_id)
        if booking is None:
            return Err(BOOKING_NOT_FOUND)

        owner_id = booking.property_rel.owner_id
        if not can_access(booking, owner_id, actor.id):
            return Err(TRANSITION_FORBIDDEN)

        if booking.status == status:
            return Ok(booking)

        outcome = authorize_transition(booking, owner_id, actor.id, status)
        if not outcome.is_ok:
            logger.warning(f"User {actor.id} may not set booking {booking_id} to {status.value}")
            return outcome

        previous = booking.status
        await self.booking_repo.update(booking, {"status": status})
        booking = await self.booking_repo.get_detailed(booking_id)
        logger.info(f"Booking {booking_id} moved from {previous.value} to {status.value} by {actor.id}")

        await self.notifications.status_changed(
            booking, booking.property_rel, booking.tenant, booking.property_rel.owner
        )
        return Ok(booking)

    async def delete_booking(self, actor: Actor, booking_id: uuid.UUID) -> Result:
        """
        Remove a booking outright. Only its tenant may do this, whatever the status.

        Returns:
            Ok(None) or Err(BookingError)
        """
        booking = await self.booking_repo.get_detailed(booking_id)
        if booking is None:
            return Err(BOOKING_NOT_FOUND)

        outcome = authorize_delete(booking, actor.id)
        if not outcome.is_ok:
            return outcome

        await self.booking_repo.delete(booking)
        logger.info(f"Booking {booking_id} deleted by tenant {actor.id}")
        return Ok(None)

    async def list_for_user(self, user_id: uuid.UUID, role: UserRole) -> List[Booking]:
        """
        Bookings visible to a user in one role, most recent first.
        Tenants see their own requests; landlords see requests on their properties.
        """
        if role == UserRole.LANDLORD:
            return await self.booking_repo.list_for_landlord(user_id)
        return await self.booking_repo.list_for_tenant(user_id)

    async def list_for_actor(self, actor: Actor) -> List[Booking]:
        """Union of the listings of every role the actor holds, most recent first."""
        seen = {}
        for role in sorted(actor.roles, key=lambda r: r.value):
            for booking in await self.list_for_user(actor.id, role):
                seen[booking.id] = booking
        return sorted(seen.values(), key=lambda b: b.created_at, reverse=True)
