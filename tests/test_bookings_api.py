"""
API tests for the booking endpoints.
"""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from sharenest.models.booking import BookingStatus
from sharenest.models.user import UserRole
from sharenest.repositories.booking import BookingRepository
from tests.conftest import BookingFactory, auth_headers

BOOKINGS_URL = "/api/v1/bookings"


def booking_payload(property_id, start="2024-06-10", end="2024-06-15", **extra) -> dict:
    return {"property_id": str(property_id), "start_date": start, "end_date": end, **extra}


class TestCreateBookingEndpoint:

    async def test_tenant_creates_booking(self, client: AsyncClient, tenant, test_property, notifier):
        response = await client.post(
            BOOKINGS_URL,
            json=booking_payload(test_property.id, message="  Arriving late  "),
            headers=auth_headers(tenant)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["start_date"] == "2024-06-10"
        assert data["end_date"] == "2024-06-15"
        assert data["nights"] == 5
        assert data["message"] == "Arriving late"
        assert data["tenant_id"] == str(tenant.id)
        assert data["property"]["title"] == test_property.title
        assert len(notifier.sent) == 2

    async def test_datetime_input_is_reduced_to_date(self, client: AsyncClient, tenant, test_property):
        response = await client.post(
            BOOKINGS_URL,
            json=booking_payload(test_property.id, start="2024-06-10T22:00:00-03:00", end="2024-06-15T09:00:00Z"),
            headers=auth_headers(tenant)
        )

        assert response.status_code == 201
        assert response.json()["start_date"] == "2024-06-11"

    async def test_requires_authentication(self, client: AsyncClient, test_property):
        response = await client.post(BOOKINGS_URL, json=booking_payload(test_property.id))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_landlord_role_cannot_book(self, client: AsyncClient, other_landlord, test_property):
        response = await client.post(
            BOOKINGS_URL,
            json=booking_payload(test_property.id),
            headers=auth_headers(other_landlord)
        )

        assert response.status_code == 403

    async def test_overlap_scenario(self, client: AsyncClient, db_session, tenant, other_tenant, test_property):
        """Approved stay 06-10..06-15 blocks 06-14 and 06-15 starts but not 06-16."""
        await BookingFactory.create_booking(
            db_session, test_property, other_tenant, date(2024, 6, 10), date(2024, 6, 15),
            status=BookingStatus.APPROVED
        )
        headers = auth_headers(tenant)

        for start in ("2024-06-14", "2024-06-15"):
            response = await client.post(
                BOOKINGS_URL, json=booking_payload(test_property.id, start=start, end="2024-06-20"), headers=headers
            )
            assert response.status_code == 400
            error = response.json()["error"]
            assert error["code"] == "BOOKING_OVERLAP"
            assert error["message"] == "Property is not available for the selected dates"

        response = await client.post(
            BOOKINGS_URL, json=booking_payload(test_property.id, start="2024-06-16", end="2024-06-20"), headers=headers
        )
        assert response.status_code == 201

    @pytest.mark.parametrize("start,end,code", [
        ("2024-05-30", "2024-06-05", "DATE_IN_PAST"),
        ("2024-06-10", "2024-06-10", "INVALID_DATE_RANGE"),
        ("2024-08-25", "2024-09-05", "OUTSIDE_AVAILABILITY_WINDOW"),
    ])
    async def test_rule_failures_are_bad_requests(self, client: AsyncClient, tenant, test_property, start, end, code):
        response = await client.post(
            BOOKINGS_URL,
            json=booking_payload(test_property.id, start=start, end=end),
            headers=auth_headers(tenant)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == code

    async def test_inactive_property(self, client: AsyncClient, tenant, inactive_property):
        response = await client.post(
            BOOKINGS_URL, json=booking_payload(inactive_property.id), headers=auth_headers(tenant)
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Property is not available for booking"

    async def test_unknown_property(self, client: AsyncClient, tenant):
        response = await client.post(
            BOOKINGS_URL,
            json=booking_payload("00000000-0000-0000-0000-000000000000"),
            headers=auth_headers(tenant)
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PROPERTY_NOT_FOUND"

    async def test_malformed_body(self, client: AsyncClient, tenant):
        response = await client.post(
            BOOKINGS_URL, json={"property_id": "nope", "start_date": "soon"}, headers=auth_headers(tenant)
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]

    @pytest.mark.parametrize("violation,status_code,code", [
        ('conflicting key value violates exclusion constraint "ex_bookings_no_overlap"', 400, "BOOKING_OVERLAP"),
        ('violates foreign key constraint "bookings_tenant_id_fkey"', 409, "INTEGRITY_ERROR"),
    ])
    async def test_storage_conflicts(self, client: AsyncClient, tenant, test_property, notifier, monkeypatch,
                                     violation, status_code, code):
        async def rejected_insert(self, obj_in):
            raise IntegrityError("INSERT INTO bookings", {}, Exception(violation))
        monkeypatch.setattr(BookingRepository, "create", rejected_insert)

        response = await client.post(BOOKINGS_URL, json=booking_payload(test_property.id), headers=auth_headers(tenant))

        assert response.status_code == status_code
        assert response.json()["error"]["code"] == code
        assert notifier.sent == []


class TestBookingStatusEndpoint:

    @pytest.fixture
    async def booking(self, db_session, test_property, tenant):
        return await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )

    async def test_owner_approves(self, client: AsyncClient, landlord, booking, notifier):
        response = await client.put(
            f"{BOOKINGS_URL}/{booking.id}/status", json={"status": "approved"}, headers=auth_headers(landlord)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        (mail,) = notifier.by_template("booking_status")
        assert mail["context"]["landlord"]["phone"] == "+49 30 5550100"

    async def test_tenant_cannot_approve(self, client: AsyncClient, tenant, booking):
        response = await client.put(
            f"{BOOKINGS_URL}/{booking.id}/status", json={"status": "approved"}, headers=auth_headers(tenant)
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "TRANSITION_FORBIDDEN"

    async def test_tenant_cancels(self, client: AsyncClient, tenant, booking, notifier):
        response = await client.put(
            f"{BOOKINGS_URL}/{booking.id}/status", json={"status": "cancelled"}, headers=auth_headers(tenant)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert notifier.sent == []

    async def test_stranger_gets_forbidden(self, client: AsyncClient, other_tenant, booking):
        response = await client.put(
            f"{BOOKINGS_URL}/{booking.id}/status", json={"status": "cancelled"}, headers=auth_headers(other_tenant)
        )

        assert response.status_code == 403

    async def test_pending_is_not_a_settable_status(self, client: AsyncClient, landlord, booking):
        response = await client.put(
            f"{BOOKINGS_URL}/{booking.id}/status", json={"status": "pending"}, headers=auth_headers(landlord)
        )

        assert response.status_code == 422

    async def test_unknown_booking(self, client: AsyncClient, landlord):
        response = await client.put(
            f"{BOOKINGS_URL}/00000000-0000-0000-0000-000000000000/status",
            json={"status": "approved"},
            headers=auth_headers(landlord)
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "BOOKING_NOT_FOUND"


class TestReadAndDeleteEndpoints:

    @pytest.fixture
    async def booking(self, db_session, test_property, tenant):
        return await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )

    async def test_get_as_tenant_and_owner(self, client: AsyncClient, tenant, landlord, booking):
        for user in (tenant, landlord):
            response = await client.get(f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(user))
            assert response.status_code == 200
            assert response.json()["id"] == str(booking.id)

    async def test_get_as_stranger(self, client: AsyncClient, other_tenant, booking):
        response = await client.get(f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(other_tenant))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "BOOKING_ACCESS_DENIED"

    async def test_list_is_scoped_to_role(self, client: AsyncClient, tenant, other_tenant, landlord, booking):
        tenant_view = await client.get(BOOKINGS_URL, headers=auth_headers(tenant))
        other_view = await client.get(BOOKINGS_URL, headers=auth_headers(other_tenant))
        landlord_view = await client.get(BOOKINGS_URL, headers=auth_headers(landlord))

        assert tenant_view.json()["total"] == 1
        assert other_view.json() == {"items": [], "total": 0}
        assert [b["id"] for b in landlord_view.json()["items"]] == [str(booking.id)]

    async def test_role_claim_overrides_stored_role(self, client: AsyncClient, landlord, booking):
        response = await client.get(BOOKINGS_URL, headers=auth_headers(landlord, role=UserRole.TENANT))

        assert response.json()["total"] == 0

    async def test_tenant_deletes(self, client: AsyncClient, tenant, booking):
        response = await client.delete(f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(tenant))
        assert response.status_code == 204

        response = await client.get(f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(tenant))
        assert response.status_code == 404

    async def test_owner_cannot_delete(self, client: AsyncClient, landlord, booking):
        response = await client.delete(f"{BOOKINGS_URL}/{booking.id}", headers=auth_headers(landlord))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "DELETE_FORBIDDEN"

    async def test_responses_carry_request_id(self, client: AsyncClient, tenant, booking):
        response = await client.get(
            f"{BOOKINGS_URL}/{booking.id}", headers={**auth_headers(tenant), "X-Request-ID": "req-123"}
        )

        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Processing-Time" in response.headers
