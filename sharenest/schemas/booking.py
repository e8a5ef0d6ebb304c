"""
Pydantic schemas for booking requests and responses.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from typing import List, Optional
from datetime import date, datetime
import uuid
from sharenest.models.booking import BookingStatus
from sharenest.schemas.user import UserPublicResponse
from sharenest.services.booking_rules import normalize_date

_datetime_adapter = TypeAdapter(datetime)

SETTABLE_STATUSES = (BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED)


def coerce_calendar_date(v):
    """
    Accept a date, or a datetime / ISO datetime string, and keep only the UTC calendar day.
    """
    if isinstance(v, str) and "T" in v:
        v = _datetime_adapter.validate_python(v)
    if isinstance(v, datetime):
        return normalize_date(v)
    return v


class BookingCreate(BaseModel):
    """Booking request submitted by a tenant."""

    property_id: uuid.UUID = Field(..., description="Property to book")
    start_date: date = Field(..., description="First day of the stay", examples=["2024-06-16"])
    end_date: date = Field(..., description="Last day of the stay", examples=["2024-06-20"])
    message: Optional[str] = Field(None, max_length=2000, description="Note to the landlord")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, v):
        return coerce_calendar_date(v)

    @field_validator("message")
    @classmethod
    def strip_message(cls, v):
        if v is None:
            return v
        return v.strip() or None


class BookingStatusUpdate(BaseModel):
    """Requested status change."""

    status: BookingStatus = Field(..., description="approved, rejected or cancelled", examples=["approved"])

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in SETTABLE_STATUSES:
            raise ValueError("Status must be one of: approved, rejected, cancelled")
        return v


class BookingPropertySummary(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    city: str
    address: str

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    """Schema for booking response data."""

    id: uuid.UUID
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    start_date: date
    end_date: date
    status: BookingStatus
    nights: int = Field(..., description="Number of nights between start and end")
    message: Optional[str] = None
    property: Optional[BookingPropertySummary] = Field(
        None,
        validation_alias=AliasChoices("property_rel", "property")
    )
    tenant: Optional[UserPublicResponse] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingListResponse(BaseModel):
    items: List[BookingResponse]
    total: int
