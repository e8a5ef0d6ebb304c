"""
Booking rules: request validation, overlap detection, status transition
authorization and the booking access predicate.

Everything here is pure. Failures are returned as ``Err(BookingError)`` values
instead of raised, so callers decide how to surface them.
"""

from datetime import date, datetime, timezone
from typing import Generic, Iterable, Optional, TypeVar, Union
import uuid

from sharenest.models.booking import Booking, BookingStatus
from sharenest.models.property import Property

T = TypeVar("T")

NOT_FOUND = "not_found"
VALIDATION = "validation"
AUTHORIZATION = "authorization"


class BookingError:
    """
    A rejected booking operation.

    Attributes:
        kind: One of "not_found", "validation" or "authorization"
        code: Stable machine-readable code, e.g. BOOKING_OVERLAP
        message: Human-readable reason; clients may match on it
    """

    __slots__ = ("kind", "code", "message")

    def __init__(self, kind: str, code: str, message: str):
        self.kind = kind
        self.code = code
        self.message = message

    def __eq__(self, other) -> bool:
        return isinstance(other, BookingError) and (self.kind, self.code) == (other.kind, other.code)

    def __hash__(self) -> int:
        return hash((self.kind, self.code))

    def __repr__(self) -> str:
        return f"BookingError({self.kind}, {self.code})"


class Ok(Generic[T]):
    __slots__ = ("value",)

    def __init__(self, value: T):
        self.value = value

    @property
    def is_ok(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


class Err:
    __slots__ = ("error",)

    def __init__(self, error: BookingError):
        self.error = error

    @property
    def is_ok(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err]


PROPERTY_NOT_FOUND = BookingError(NOT_FOUND, "PROPERTY_NOT_FOUND", "Property not found")
PROPERTY_INACTIVE = BookingError(VALIDATION, "PROPERTY_INACTIVE", "Property is not available for booking")
DATE_IN_PAST = BookingError(VALIDATION, "DATE_IN_PAST", "Start date cannot be in the past")
INVALID_DATE_RANGE = BookingError(VALIDATION, "INVALID_DATE_RANGE", "End date must be after start date")
OUTSIDE_AVAILABILITY_WINDOW = BookingError(
    VALIDATION,
    "OUTSIDE_AVAILABILITY_WINDOW",
    "Selected dates are outside the property's availability window"
)
BOOKING_OVERLAP = BookingError(VALIDATION, "BOOKING_OVERLAP", "Property is not available for the selected dates")
BOOKING_NOT_FOUND = BookingError(NOT_FOUND, "BOOKING_NOT_FOUND", "Booking not found")
BOOKING_ACCESS_DENIED = BookingError(AUTHORIZATION, "BOOKING_ACCESS_DENIED", "You do not have access to this booking")
TRANSITION_FORBIDDEN = BookingError(
    AUTHORIZATION,
    "TRANSITION_FORBIDDEN",
    "You do not have permission to update this booking"
)
DELETE_FORBIDDEN = BookingError(AUTHORIZATION, "DELETE_FORBIDDEN", "You do not have permission to delete this booking")

# Target status -> who may move a booking into it
OWNER_ONLY = frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED})
TENANT_OR_OWNER = frozenset({BookingStatus.CANCELLED})


def normalize_date(value: Union[date, datetime]) -> date:
    """
    Reduce a date or datetime to its calendar date in UTC.
    Naive datetimes are taken as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def overlaps(existing_start: date, existing_end: date, start: date, end: date) -> bool:
    """
    Inclusive overlap: a stay ending on the day another begins conflicts.
    """
    return existing_start <= end and existing_end >= start


def find_conflict(blocking: Iterable[Booking], start: date, end: date) -> Optional[Booking]:
    """First pending/approved booking whose dates overlap [start, end]."""
    for booking in blocking:
        if not booking.is_blocking:
            continue
        if overlaps(booking.start_date, booking.end_date, start, end):
            return booking
    return None


def validate_booking_request(
    property_obj: Optional[Property],
    start: Union[date, datetime],
    end: Union[date, datetime],
    today: date,
    blocking: Iterable[Booking] = ()
) -> Result:
    """
    Check a booking request against the property and its existing bookings.
    Rules run in a fixed order and the first failure wins.

    Args:
        property_obj: Target property, or None when it does not exist
        start: Requested first day
        end: Requested last day
        today: Current UTC date
        blocking: Pending and approved bookings of the property

    Returns:
        Ok((start, end)) with normalized dates, or Err(BookingError)
    """
    if property_obj is None:
        return Err(PROPERTY_NOT_FOUND)
    if not property_obj.is_active:
        return Err(PROPERTY_INACTIVE)

    start = normalize_date(start)
    end = normalize_date(end)

    if start < today:
        return Err(DATE_IN_PAST)
    if end <= start:
        return Err(INVALID_DATE_RANGE)
    if not property_obj.covers(start, end):
        return Err(OUTSIDE_AVAILABILITY_WINDOW)
    if find_conflict(blocking, start, end) is not None:
        return Err(BOOKING_OVERLAP)

    return Ok((start, end))


def can_access(booking: Booking, owner_id: uuid.UUID, actor_id: uuid.UUID) -> bool:
    """True when the actor is the booking's tenant or the property's owner."""
    return actor_id == booking.tenant_id or actor_id == owner_id


def authorize_transition(
    booking: Booking,
    owner_id: uuid.UUID,
    actor_id: uuid.UUID,
    target: BookingStatus
) -> Result:
    """
    Decide whether the actor may move the booking into ``target``.

    Approve and reject belong to the property owner; cancel to the tenant or
    the owner. The current status is not consulted, so a decided booking can
    be decided again.

    Returns:
        Ok(target) or Err(TRANSITION_FORBIDDEN)
    """
    is_owner = actor_id == owner_id
    is_tenant = actor_id == booking.tenant_id

    if target in OWNER_ONLY and is_owner:
        return Ok(target)
    if target in TENANT_OR_OWNER and (is_owner or is_tenant):
        return Ok(target)
    return Err(TRANSITION_FORBIDDEN)


def authorize_delete(booking: Booking, actor_id: uuid.UUID) -> Result:
    """Only the tenant who made the booking may delete it."""
    if actor_id == booking.tenant_id:
        return Ok(booking)
    return Err(DELETE_FORBIDDEN)
