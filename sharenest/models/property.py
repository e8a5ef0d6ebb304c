"""
Property model for rental listings.
Holds listing data, the landlord-defined availability window, and relationships.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, Date, JSON, Enum as SQLEnum,
    Index, ForeignKey, CheckConstraint, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sharenest.database import Base
from datetime import date
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from sharenest.models.user import User
    from sharenest.models.image import PropertyImage
    from sharenest.models.booking import Booking


class PropertyCategory(str, enum.Enum):
    """Kind of space being offered."""
    SUBLET = "sublet"
    PRIVATE_ROOM = "private_room"
    SHARED_ROOM = "shared_room"
    ENTIRE_PLACE = "entire_place"


class Property(Base):
    """
    Property model for managing rental listings.
    The availability window is inclusive; a missing available_to means open-ended.
    """

    __tablename__ = "properties"
    __table_args__ = (
        CheckConstraint(
            "available_to IS NULL OR available_to >= available_from",
            name="ck_properties_availability_window"
        ),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the landlord who owns this property"
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[PropertyCategory] = mapped_column(
        SQLEnum(PropertyCategory, name="property_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True
    )

    # Location
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    postcode: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    house_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=9, scale=6), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=9, scale=6), nullable=True)

    # Pricing and size
    price: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False, index=True)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Size in square metres")
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Availability
    available_from: Mapped[date] = mapped_column(Date, nullable=False)
    available_to: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Whether the listing accepts bookings"
    )

    owner: Mapped["User"] = relationship(
        "User",
        back_populates="properties",
        lazy="selectin"
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.display_order"
    )

    bookings: Mapped[List["Booking"]] = relationship(
        "Booking",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}, owner_id={self.owner_id})>"

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.owner_id == user_id

    def covers(self, start: date, end: date) -> bool:
        """Whether [start, end] lies within the inclusive availability window."""
        if start < self.available_from:
            return False
        if self.available_to is not None and end > self.available_to:
            return False
        return True


# Composite index for the public search listing
search_index = Index(
    "idx_properties_search",
    Property.city,
    Property.category,
    Property.price,
    Property.is_active
)

# Composite index for a landlord's listings
owner_active_index = Index(
    "idx_properties_owner_active",
    Property.owner_id,
    Property.is_active
)
