"""
Pydantic schemas for reviews.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
import uuid
from sharenest.schemas.user import UserPublicResponse


class ReviewCreate(BaseModel):
    property_id: uuid.UUID
    rating: int = Field(..., ge=1, le=5, examples=[5])
    comment: Optional[str] = Field(None, max_length=2000, examples=["Lovely flat, great host."])

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v):
        if v is None:
            return v
        return v.strip() or None


class ReviewResponse(BaseModel):
    id: uuid.UUID
    property_id: uuid.UUID
    reviewer_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    reviewer: Optional[UserPublicResponse] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyReviewsResponse(BaseModel):
    """Reviews of one property with the rating summary."""

    items: List[ReviewResponse]
    average_rating: Optional[float] = None
    count: int


class PendingReview(BaseModel):
    """A completed stay the tenant can still review."""

    booking_id: uuid.UUID
    property_id: uuid.UUID
    property_title: str
    start_date: date
    end_date: date


class LandlordReviewsResponse(PropertyReviewsResponse):
    """Reviews across all properties of one landlord."""

    landlord_id: uuid.UUID
