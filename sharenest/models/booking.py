"""
Booking model for tenant stay requests.
Carries the storage-level guarantees that back the overlap rules: a CHECK on the
date range and, on PostgreSQL, an exclusion constraint over blocking bookings.
"""

from sqlalchemy import (
    Text, Date, ForeignKey, CheckConstraint, Index, Uuid, DDL,
    Enum as SQLEnum, event, func, literal_column, text
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sharenest.database import Base
from datetime import date
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from sharenest.models.property import Property
    from sharenest.models.user import User


class BookingStatus(str, enum.Enum):
    """Booking lifecycle states. PENDING is the only legal initial state."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.APPROVED})

OVERLAP_CONSTRAINT = "ex_bookings_no_overlap"


class Booking(Base):
    """
    Booking of a property by a tenant for an inclusive date range.
    property_id, tenant_id and the dates never change after creation;
    only the status moves.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_bookings_date_range"),
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        SQLEnum(BookingStatus, name="booking_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="bookings",
        lazy="selectin"
    )

    tenant: Mapped["User"] = relationship(
        "User",
        back_populates="bookings",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days


# Listing and overlap lookups
property_dates_index = Index(
    "idx_bookings_property_dates",
    Booking.property_id,
    Booking.start_date,
    Booking.end_date
)

tenant_created_index = Index(
    "idx_bookings_tenant_created",
    Booking.tenant_id,
    Booking.created_at.desc()
)

# No two blocking bookings of one property may share a day
Booking.__table__.append_constraint(
    ExcludeConstraint(
        (Booking.__table__.c.property_id, "="),
        (
            func.daterange(
                Booking.__table__.c.start_date,
                Booking.__table__.c.end_date,
                literal_column("'[]'")
            ),
            "&&"
        ),
        name=OVERLAP_CONSTRAINT,
        using="gist",
        where=text("status IN ('pending', 'approved')"),
    ).ddl_if(dialect="postgresql")
)

event.listen(
    Booking.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql")
)
