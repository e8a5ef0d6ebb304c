"""
Pydantic schemas for property requests and responses.
Handles property CRUD operations, search filters, and validation.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
import uuid
from sharenest.models.property import PropertyCategory
from sharenest.schemas.user import UserPublicResponse
from sharenest.schemas.image import PropertyImageResponse


class PropertyBase(BaseModel):
    """Base property schema with common fields."""

    title: str = Field(
        ...,
        min_length=5,
        max_length=255,
        description="Listing title",
        examples=["Sunny room in Kreuzberg"]
    )

    description: str = Field(
        ...,
        min_length=20,
        max_length=5000,
        description="Detailed listing description",
        examples=["Bright private room in a shared flat, close to the canal and U-Bahn."]
    )

    category: PropertyCategory = Field(..., description="Kind of space offered", examples=["private_room"])

    city: str = Field(..., min_length=2, max_length=120, examples=["Berlin"])
    postcode: str = Field(..., min_length=2, max_length=20, examples=["10999"])
    address: str = Field(..., min_length=3, max_length=255, examples=["Paul-Lincke-Ufer 20, 10999 Berlin"])
    street: Optional[str] = Field(None, max_length=255)
    house_number: Optional[str] = Field(None, max_length=20)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)

    price: Decimal = Field(..., gt=0, description="Price per month", examples=[650])
    bedrooms: int = Field(..., ge=0, le=50, examples=[1])
    bathrooms: int = Field(..., ge=0, le=50, examples=[1])
    size: Optional[int] = Field(None, gt=0, le=100000, description="Size in square metres")
    amenities: List[str] = Field(default_factory=list, examples=[["wifi", "washing_machine"]])

    available_from: date = Field(..., description="First bookable day")
    available_to: Optional[date] = Field(None, description="Last bookable day; open-ended when omitted")

    @field_validator("title", "description", "city", "address")
    @classmethod
    def strip_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v):
        cleaned = []
        for item in v:
            item = item.strip().lower()
            if item and item not in cleaned:
                cleaned.append(item)
        return cleaned

    @model_validator(mode="after")
    def validate_window(self):
        if self.available_to is not None and self.available_to < self.available_from:
            raise ValueError("available_to cannot be before available_from")
        return self


class PropertyCreate(PropertyBase):
    """Schema for creating a new property."""


class PropertyUpdate(BaseModel):
    """Partial update; only provided fields change."""

    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = Field(None, min_length=20, max_length=5000)
    category: Optional[PropertyCategory] = None
    city: Optional[str] = Field(None, min_length=2, max_length=120)
    postcode: Optional[str] = Field(None, min_length=2, max_length=20)
    address: Optional[str] = Field(None, min_length=3, max_length=255)
    street: Optional[str] = Field(None, max_length=255)
    house_number: Optional[str] = Field(None, max_length=20)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    price: Optional[Decimal] = Field(None, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    size: Optional[int] = Field(None, gt=0, le=100000)
    amenities: Optional[List[str]] = None
    available_from: Optional[date] = None
    available_to: Optional[date] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def validate_window(self):
        if self.available_from and self.available_to and self.available_to < self.available_from:
            raise ValueError("available_to cannot be before available_from")
        return self


class PropertyResponse(BaseModel):
    """Schema for property response data."""

    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    category: PropertyCategory
    city: str
    postcode: str
    address: str
    street: Optional[str] = None
    house_number: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    price: Decimal
    bedrooms: int
    bathrooms: int
    size: Optional[int] = None
    amenities: List[str] = []
    available_from: date
    available_to: Optional[date] = None
    is_active: bool
    owner: Optional[UserPublicResponse] = None
    images: List[PropertyImageResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
    """Paginated property listing."""

    items: List[PropertyResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PropertySearchParams(BaseModel):
    """Query parameters of the public property search."""

    query: Optional[str] = Field(None, max_length=255, description="Matches title or description")
    category: Optional[PropertyCategory] = None
    city: Optional[str] = Field(None, max_length=120)
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_bedrooms: Optional[int] = Field(None, ge=0)
    min_bathrooms: Optional[int] = Field(None, ge=0)
    available_from: Optional[date] = None
    available_to: Optional[date] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("Minimum price cannot be greater than maximum price")
        if self.available_from and self.available_to and self.available_to < self.available_from:
            raise ValueError("available_to cannot be before available_from")
        return self


class CategoryCount(BaseModel):
    category: PropertyCategory
    count: int


class CityCount(BaseModel):
    city: str
    count: int


class PriceRange(BaseModel):
    """Price spread of active listings; zeros when there are none."""

    min: float
    max: float
    avg: int
