"""
Booking API endpoints.
Booking rule failures come back from the service as Err values and are
converted to HTTP errors here.
"""

from fastapi import APIRouter, Depends, status
from uuid import UUID

from sharenest.models.user import UserRole
from sharenest.services.booking import BookingService
from sharenest.services.booking_rules import Result
from sharenest.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
)
from sharenest.schemas.error import get_error_responses
from sharenest.utils.auth import Actor
from sharenest.utils.dependencies import get_booking_service, get_current_actor, require_roles
from sharenest.utils.exceptions import booking_error_to_exception


router = APIRouter(prefix="/bookings", tags=["Bookings"])


def unwrap(result: Result):
    """Value of an Ok, or raise the HTTP error matching an Err."""
    if not result.is_ok:
        raise booking_error_to_exception(result.error)
    return result.value


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
    description=(
        "Create a pending booking for a property. The dates must lie within the "
        "property's availability window and must not overlap a pending or approved booking."
    ),
    responses=get_error_responses(400, 401, 403, 404, 422)
)
async def create_booking(
    booking_data: BookingCreate,
    actor: Actor = Depends(require_roles(UserRole.TENANT)),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    booking = unwrap(await booking_service.create_booking(
        actor,
        booking_data.property_id,
        booking_data.start_date,
        booking_data.end_date,
        booking_data.message
    ))
    return BookingResponse.model_validate(booking)


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List my bookings",
    description="Tenants see their requests; landlords see requests on their properties.",
    responses=get_error_responses(401)
)
async def list_bookings(
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingListResponse:
    bookings = await booking_service.list_for_actor(actor)
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings)
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking by ID",
    description="Visible to the booking's tenant and the property's owner.",
    responses=get_error_responses(401, 403, 404)
)
async def get_booking(
    booking_id: UUID,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    booking = unwrap(await booking_service.get_booking(actor, booking_id))
    return BookingResponse.model_validate(booking)


@router.put(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Change booking status",
    description=(
        "The property owner may approve or reject; the tenant or the owner may cancel. "
        "The tenant is mailed when a request is approved or rejected."
    ),
    responses=get_error_responses(401, 403, 404, 422)
)
async def update_booking_status(
    booking_id: UUID,
    status_data: BookingStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    booking = unwrap(await booking_service.update_status(actor, booking_id, status_data.status))
    return BookingResponse.model_validate(booking)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete booking",
    description="Hard delete by the booking's tenant, regardless of status.",
    responses=get_error_responses(401, 403, 404)
)
async def delete_booking(
    booking_id: UUID,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service)
) -> None:
    unwrap(await booking_service.delete_booking(actor, booking_id))
