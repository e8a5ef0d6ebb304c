"""
Tests for notifier selection, template rendering and best-effort dispatch.
"""

import uuid
from datetime import date, datetime, timezone

import pytest

from sharenest.config import Settings
from sharenest.models.booking import Booking, BookingStatus
from sharenest.models.property import Property
from sharenest.models.user import User, UserRole
from sharenest.services.notifications import (
    BookingNotifications,
    EmailNotifier,
    LoggingNotifier,
    create_notifier,
    dispatch,
)
from tests.conftest import RecordingNotifier


@pytest.fixture
def people():
    landlord = User(
        id=uuid.uuid4(), email="landlord@example.com", first_name="Lena", last_name="Vogel",
        role=UserRole.LANDLORD, phone="+49 30 5550100"
    )
    tenant = User(
        id=uuid.uuid4(), email="tenant@example.com", first_name="Tom", last_name="Berger", role=UserRole.TENANT
    )
    return landlord, tenant


@pytest.fixture
def stay(people):
    landlord, tenant = people
    property_obj = Property(id=uuid.uuid4(), owner_id=landlord.id, title="Sunny <room>", is_active=True)
    booking = Booking(
        id=uuid.uuid4(),
        property_id=property_obj.id,
        tenant_id=tenant.id,
        start_date=date(2024, 6, 10),
        end_date=date(2024, 6, 15),
        status=BookingStatus.PENDING,
        message="Hi!",
        created_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )
    return booking, property_obj


def mail_settings(**overrides) -> Settings:
    return Settings(jwt_secret_key="x" * 40, mail_enabled=True, frontend_url="https://app.example.com", **overrides)


class TestNotifierSelection:

    def test_disabled_mail_uses_logging_notifier(self):
        assert isinstance(create_notifier(Settings(jwt_secret_key="x" * 40, mail_enabled=False)), LoggingNotifier)

    def test_enabled_mail_uses_email_notifier(self):
        assert isinstance(create_notifier(mail_settings()), EmailNotifier)


class TestStatusPayload:

    @pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.CANCELLED])
    def test_no_mail_for_other_statuses(self, people, stay, status):
        landlord, tenant = people
        booking, property_obj = stay
        booking.status = status

        payload = BookingNotifications(RecordingNotifier(), "https://app.example.com").status_payload(
            booking, property_obj, tenant, landlord
        )

        assert payload is None

    def test_approval_carries_landlord_contact(self, people, stay):
        landlord, tenant = people
        booking, property_obj = stay
        booking.status = BookingStatus.APPROVED

        payload = BookingNotifications(RecordingNotifier(), "https://app.example.com/").status_payload(
            booking, property_obj, tenant, landlord
        )

        assert payload["landlord"] == {"name": "Lena Vogel", "phone": "+49 30 5550100"}
        assert payload["view_url"] == f"https://app.example.com/bookings/{booking.id}"
        assert payload["dates"] == {"check_in": "2024-06-10", "check_out": "2024-06-15"}

    def test_rejection_has_no_contact(self, people, stay):
        landlord, tenant = people
        booking, property_obj = stay
        booking.status = BookingStatus.REJECTED

        payload = BookingNotifications(RecordingNotifier(), "https://app.example.com").status_payload(
            booking, property_obj, tenant, landlord
        )

        assert payload["status"] == "rejected"
        assert "landlord" not in payload


class TestRendering:

    def test_booking_request_template(self, people, stay):
        landlord, tenant = people
        booking, property_obj = stay
        html = EmailNotifier(mail_settings()).render("booking_request", {
            "name": landlord.first_name,
            "property_title": property_obj.title,
            "tenant_name": tenant.full_name,
            "dates": {"check_in": "2024-06-10", "check_out": "2024-06-15"},
            "message": booking.message,
            "view_url": "https://app.example.com/bookings/1",
        })

        assert "Hello Lena" in html
        assert "Tom Berger" in html
        assert "Sunny &lt;room&gt;" in html
        assert "2024-06-10 to 2024-06-15" in html

    def test_status_template_shows_contact_only_when_given(self):
        notifier = EmailNotifier(mail_settings())
        base = {
            "name": "Tom",
            "property_title": "Sunny room",
            "status": "rejected",
            "status_text": "Declined",
            "dates": {"check_in": "2024-06-10", "check_out": "2024-06-15"},
            "view_url": "https://app.example.com/bookings/1",
        }

        declined = notifier.render("booking_status", base)
        approved = notifier.render("booking_status", {
            **base, "status": "approved", "status_text": "Approved",
            "landlord": {"name": "Lena Vogel", "phone": "+49 30 5550100"},
        })

        assert "Landlord Contact Information" not in declined
        assert "+49 30 5550100" in approved

    def test_approval_without_landlord_phone(self):
        html = EmailNotifier(mail_settings()).render("booking_status", {
            "name": "Tom",
            "property_title": "Sunny room",
            "status": "approved",
            "status_text": "Approved",
            "dates": {"check_in": "2024-06-10", "check_out": "2024-06-15"},
            "view_url": "https://app.example.com/bookings/1",
            "landlord": {"name": "Lena Vogel", "phone": None},
        })

        assert "Lena Vogel" in html
        assert "Phone:" not in html
        assert "None" not in html

    async def test_send_builds_html_message(self, monkeypatch):
        notifier = EmailNotifier(mail_settings(mail_from="bookings@example.com"))
        delivered = []
        monkeypatch.setattr(notifier, "_deliver", delivered.append)

        await notifier.send("tenant@example.com", "Verify", "verification", {
            "name": "Tom", "verification_url": "https://app.example.com/verify-email?token=abc", "expires_hours": 24,
        })

        (message,) = delivered
        assert message["To"] == "tenant@example.com"
        assert message["From"] == "ShareNest <bookings@example.com>"
        html = message.get_body(preferencelist=("html",)).get_content()
        assert "verify-email?token=abc" in html


class TestDispatch:

    async def test_failures_are_swallowed(self):
        assert await dispatch(RecordingNotifier(fail=True), "a@example.com", "Hi", "verification", {}) is False

    async def test_success_is_reported(self):
        notifier = RecordingNotifier()

        assert await dispatch(notifier, "a@example.com", "Hi", "verification", {"name": "A"}) is True
        assert notifier.sent[0]["to"] == "a@example.com"

    async def test_logging_notifier_accepts_everything(self):
        assert await dispatch(LoggingNotifier(), "a@example.com", "Hi", "verification", {}) is True
