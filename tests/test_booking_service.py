"""
Tests for BookingService: persistence, notifications and user-scoped listings.
"""

import uuid
from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from sharenest.models.booking import Booking, BookingStatus
from sharenest.models.user import UserRole
from sharenest.services.booking import BookingService, is_overlap_violation
from sharenest.services.booking_rules import (
    BOOKING_ACCESS_DENIED,
    BOOKING_NOT_FOUND,
    BOOKING_OVERLAP,
    DELETE_FORBIDDEN,
    PROPERTY_INACTIVE,
    PROPERTY_NOT_FOUND,
    TRANSITION_FORBIDDEN,
)
from sharenest.utils.auth import Actor
from tests.conftest import BookingFactory, PropertyFactory, RecordingNotifier, fixed_clock


def make_service(db_session, notifier) -> BookingService:
    return BookingService(db_session, notifier, clock=fixed_clock, frontend_url="https://app.example.com/")


def failing_commit(db_session, message):
    """Commit replacement that writes the pending rows, then reports a constraint violation."""
    async def commit():
        await db_session.flush()
        raise IntegrityError("INSERT INTO bookings", {}, Exception(message))
    return commit


OVERLAP_VIOLATION = 'conflicting key value violates exclusion constraint "ex_bookings_no_overlap"'


class DriverConstraintError(Exception):
    """Driver error carrying the violated constraint name, as asyncpg does."""

    def __init__(self, constraint_name: str):
        super().__init__(f"constraint {constraint_name} violated")
        self.constraint_name = constraint_name


class TestCreateBooking:

    async def test_creates_pending_booking(self, db_session, notifier, tenant, test_property):
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), test_property.id, date(2024, 6, 10), date(2024, 6, 15), "Quiet guest"
        )

        assert result.is_ok
        booking = result.value
        assert booking.status == BookingStatus.PENDING
        assert booking.tenant_id == tenant.id
        assert booking.property_id == test_property.id
        assert booking.message == "Quiet guest"

    async def test_notifies_landlord_and_tenant(self, db_session, notifier, landlord, tenant, test_property):
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), test_property.id, date(2024, 6, 10), date(2024, 6, 15)
        )

        assert [m["template"] for m in notifier.sent] == ["booking_request", "booking_confirmation"]
        request_mail, confirmation = notifier.sent
        assert request_mail["to"] == landlord.email
        assert request_mail["context"]["tenant_name"] == "Tom Berger"
        assert request_mail["context"]["view_url"] == f"https://app.example.com/bookings/{result.value.id}"
        assert confirmation["to"] == tenant.email
        assert confirmation["context"]["dates"] == {"check_in": "2024-06-10", "check_out": "2024-06-15"}

    async def test_failing_notifier_does_not_undo_booking(self, db_session, tenant, test_property):
        service = make_service(db_session, RecordingNotifier(fail=True))

        result = await service.create_booking(
            Actor.from_user(tenant), test_property.id, date(2024, 6, 10), date(2024, 6, 15)
        )

        assert result.is_ok
        stored = await service.booking_repo.get_by_id(result.value.id)
        assert stored is not None
        assert stored.status == BookingStatus.PENDING

    async def test_overlap_with_approved_booking(self, db_session, notifier, tenant, other_tenant, test_property):
        await BookingFactory.create_booking(
            db_session, test_property, other_tenant, date(2024, 6, 10), date(2024, 6, 15),
            status=BookingStatus.APPROVED
        )
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), test_property.id, date(2024, 6, 15), date(2024, 6, 20)
        )

        assert result.error == BOOKING_OVERLAP
        assert notifier.sent == []

    async def test_pending_booking_also_blocks(self, db_session, notifier, tenant, other_tenant, test_property):
        await BookingFactory.create_booking(
            db_session, test_property, other_tenant, date(2024, 6, 10), date(2024, 6, 15)
        )
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), test_property.id, date(2024, 6, 12), date(2024, 6, 13)
        )

        assert result.error == BOOKING_OVERLAP

    async def test_cancelled_booking_frees_the_dates(self, db_session, notifier, tenant, other_tenant, test_property):
        await BookingFactory.create_booking(
            db_session, test_property, other_tenant, date(2024, 6, 10), date(2024, 6, 15),
            status=BookingStatus.CANCELLED
        )
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), test_property.id, date(2024, 6, 10), date(2024, 6, 15)
        )

        assert result.is_ok

    async def test_adjacent_booking_succeeds(self, db_session, notifier, tenant, other_tenant, test_property):
        await BookingFactory.create_booking(
            db_session, test_property, other_tenant, date(2024, 6, 10), date(2024, 6, 15),
            status=BookingStatus.APPROVED
        )
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), test_property.id, date(2024, 6, 16), date(2024, 6, 20)
        )

        assert result.is_ok

    async def test_unknown_property(self, db_session, notifier, tenant):
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), uuid.uuid4(), date(2024, 6, 10), date(2024, 6, 15)
        )

        assert result.error == PROPERTY_NOT_FOUND

    async def test_inactive_property(self, db_session, notifier, tenant, inactive_property):
        service = make_service(db_session, notifier)

        result = await service.create_booking(
            Actor.from_user(tenant), inactive_property.id, date(2024, 6, 10), date(2024, 6, 15)
        )

        assert result.error == PROPERTY_INACTIVE


class TestStorageConflicts:

    async def test_exclusion_violation_is_reported_as_overlap(
        self, db_session, notifier, tenant, test_property, monkeypatch
    ):
        actor = Actor.from_user(tenant)
        property_id = test_property.id
        service = make_service(db_session, notifier)
        monkeypatch.setattr(db_session, "commit", failing_commit(db_session, OVERLAP_VIOLATION))

        result = await service.create_booking(actor, property_id, date(2024, 6, 10), date(2024, 6, 15))

        assert not result.is_ok
        assert result.error == BOOKING_OVERLAP
        assert notifier.sent == []

        monkeypatch.undo()
        remaining = await db_session.execute(select(func.count(Booking.id)))
        assert remaining.scalar() == 0

        retry = await service.create_booking(actor, property_id, date(2024, 6, 10), date(2024, 6, 15))
        assert retry.is_ok
        assert [m["template"] for m in notifier.sent] == ["booking_request", "booking_confirmation"]

    async def test_other_integrity_errors_propagate(self, db_session, notifier, tenant, test_property, monkeypatch):
        actor = Actor.from_user(tenant)
        property_id = test_property.id
        service = make_service(db_session, notifier)
        monkeypatch.setattr(db_session, "commit", failing_commit(db_session, "FOREIGN KEY constraint failed"))

        with pytest.raises(IntegrityError):
            await service.create_booking(actor, property_id, date(2024, 6, 10), date(2024, 6, 15))

        assert notifier.sent == []

    @pytest.mark.parametrize("orig,expected", [
        (Exception(OVERLAP_VIOLATION), True),
        (Exception('violates foreign key constraint "bookings_tenant_id_fkey"'), False),
        (DriverConstraintError("ex_bookings_no_overlap"), True),
        (DriverConstraintError("ck_bookings_date_range"), False),
    ])
    def test_overlap_violation_detection(self, orig, expected):
        assert is_overlap_violation(IntegrityError("INSERT INTO bookings", {}, orig)) is expected


class TestUpdateStatus:

    @pytest.fixture
    async def pending_booking(self, db_session, test_property, tenant):
        return await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )

    async def test_owner_approves_and_tenant_gets_contact(self, db_session, notifier, landlord, tenant,
                                                          pending_booking):
        service = make_service(db_session, notifier)

        result = await service.update_status(Actor.from_user(landlord), pending_booking.id, BookingStatus.APPROVED)

        assert result.is_ok
        assert result.value.status == BookingStatus.APPROVED
        (mail,) = notifier.by_template("booking_status")
        assert mail["to"] == tenant.email
        assert mail["context"]["status"] == "approved"
        assert mail["context"]["landlord"] == {"name": "Lena Vogel", "phone": "+49 30 5550100"}

    async def test_owner_rejects_without_contact(self, db_session, notifier, landlord, pending_booking):
        service = make_service(db_session, notifier)

        result = await service.update_status(Actor.from_user(landlord), pending_booking.id, BookingStatus.REJECTED)

        assert result.value.status == BookingStatus.REJECTED
        (mail,) = notifier.by_template("booking_status")
        assert mail["context"]["status_text"] == "Declined"
        assert "landlord" not in mail["context"]

    async def test_tenant_cancels_without_mail(self, db_session, notifier, tenant, pending_booking):
        service = make_service(db_session, notifier)

        result = await service.update_status(Actor.from_user(tenant), pending_booking.id, BookingStatus.CANCELLED)

        assert result.value.status == BookingStatus.CANCELLED
        assert notifier.sent == []

    async def test_tenant_cannot_approve(self, db_session, notifier, tenant, pending_booking):
        service = make_service(db_session, notifier)

        result = await service.update_status(Actor.from_user(tenant), pending_booking.id, BookingStatus.APPROVED)

        assert result.error == TRANSITION_FORBIDDEN
        stored = await service.booking_repo.get_detailed(pending_booking.id)
        assert stored.status == BookingStatus.PENDING

    async def test_stranger_cannot_cancel(self, db_session, notifier, other_landlord, pending_booking):
        service = make_service(db_session, notifier)

        result = await service.update_status(
            Actor.from_user(other_landlord), pending_booking.id, BookingStatus.CANCELLED
        )

        assert result.error == TRANSITION_FORBIDDEN

    async def test_same_status_is_noop(self, db_session, notifier, landlord, test_property, tenant):
        booking = await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15),
            status=BookingStatus.APPROVED
        )
        service = make_service(db_session, notifier)

        result = await service.update_status(Actor.from_user(landlord), booking.id, BookingStatus.APPROVED)

        assert result.is_ok
        assert notifier.sent == []

    async def test_failing_notifier_keeps_status_change(self, db_session, landlord, pending_booking):
        service = make_service(db_session, RecordingNotifier(fail=True))

        result = await service.update_status(Actor.from_user(landlord), pending_booking.id, BookingStatus.APPROVED)

        assert result.is_ok
        stored = await service.booking_repo.get_detailed(pending_booking.id)
        assert stored.status == BookingStatus.APPROVED

    async def test_unknown_booking(self, db_session, notifier, landlord):
        service = make_service(db_session, notifier)

        result = await service.update_status(Actor.from_user(landlord), uuid.uuid4(), BookingStatus.APPROVED)

        assert result.error == BOOKING_NOT_FOUND


class TestAccessAndDelete:

    @pytest.fixture
    async def booking(self, db_session, test_property, tenant):
        return await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )

    async def test_tenant_and_owner_can_read(self, db_session, notifier, landlord, tenant, booking):
        service = make_service(db_session, notifier)

        assert (await service.get_booking(Actor.from_user(tenant), booking.id)).is_ok
        assert (await service.get_booking(Actor.from_user(landlord), booking.id)).is_ok

    async def test_stranger_cannot_read(self, db_session, notifier, other_tenant, booking):
        service = make_service(db_session, notifier)

        result = await service.get_booking(Actor.from_user(other_tenant), booking.id)

        assert result.error == BOOKING_ACCESS_DENIED

    async def test_tenant_deletes_booking(self, db_session, notifier, tenant, booking):
        service = make_service(db_session, notifier)

        result = await service.delete_booking(Actor.from_user(tenant), booking.id)

        assert result.is_ok
        assert (await service.get_booking(Actor.from_user(tenant), booking.id)).error == BOOKING_NOT_FOUND

    async def test_owner_cannot_delete(self, db_session, notifier, landlord, booking):
        service = make_service(db_session, notifier)

        result = await service.delete_booking(Actor.from_user(landlord), booking.id)

        assert result.error == DELETE_FORBIDDEN


class TestListings:

    async def test_tenant_sees_only_own_bookings(self, db_session, notifier, tenant, other_tenant, test_property):
        mine = await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )
        await BookingFactory.create_booking(
            db_session, test_property, other_tenant, date(2024, 7, 1), date(2024, 7, 5)
        )
        service = make_service(db_session, notifier)

        bookings = await service.list_for_user(tenant.id, UserRole.TENANT)

        assert [b.id for b in bookings] == [mine.id]

    async def test_landlord_sees_bookings_on_own_properties(self, db_session, notifier, landlord, other_landlord,
                                                            tenant, test_property):
        other_property = await PropertyFactory.create_property(db_session, other_landlord, title="Elsewhere")
        on_mine = await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )
        await BookingFactory.create_booking(
            db_session, other_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )
        service = make_service(db_session, notifier)

        bookings = await service.list_for_user(landlord.id, UserRole.LANDLORD)

        assert [b.id for b in bookings] == [on_mine.id]

    async def test_listing_is_most_recent_first(self, db_session, notifier, tenant, test_property):
        first = await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )
        second = await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 7, 10), date(2024, 7, 15)
        )
        service = make_service(db_session, notifier)

        bookings = await service.list_for_user(tenant.id, UserRole.TENANT)

        assert [b.id for b in bookings] == [second.id, first.id]

    async def test_actor_with_both_roles_sees_union(self, db_session, notifier, landlord, tenant, other_landlord,
                                                    test_property):
        other_property = await PropertyFactory.create_property(db_session, other_landlord, title="Elsewhere")
        as_owner = await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )
        as_tenant = await BookingFactory.create_booking(
            db_session, other_property, landlord, date(2024, 6, 10), date(2024, 6, 15)
        )
        service = make_service(db_session, notifier)

        bookings = await service.list_for_actor(Actor(landlord.id, {UserRole.LANDLORD, UserRole.TENANT}))

        assert {b.id for b in bookings} == {as_owner.id, as_tenant.id}
