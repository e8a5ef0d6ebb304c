"""
Tests for model helpers and storage-level constraints.
"""

from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from sharenest.models import Booking, BookingStatus, Favorite, User, UserRole
from sharenest.repositories.property import FavoriteRepository
from sharenest.repositories.user import UserRepository
from sharenest.schemas.user import UserPublicResponse
from tests.conftest import DEFAULT_PASSWORD, BookingFactory


class TestUserModel:

    async def test_password_is_hashed(self, tenant):
        assert tenant.hashed_password != DEFAULT_PASSWORD
        assert tenant.verify_password(DEFAULT_PASSWORD)
        assert not tenant.verify_password("something-else1")

    def test_short_password_rejected(self):
        with pytest.raises(ValueError):
            User.hash_password("short")

    def test_email_normalized(self):
        assert User.validate_email_format("Someone@Example.COM") == "someone@example.com"

    def test_invalid_email(self):
        with pytest.raises(ValueError):
            User.validate_email_format("not-an-email")

    def test_role_helpers(self, landlord, tenant):
        assert landlord.is_landlord and not landlord.is_tenant
        assert tenant.is_tenant and not tenant.is_landlord
        assert landlord.full_name == "Lena Vogel"

    def test_public_profile_has_no_contact(self, landlord):
        public = UserPublicResponse.model_validate(landlord).model_dump(mode="json")

        assert "email" not in public
        assert "phone" not in public
        assert public["role"] == UserRole.LANDLORD.value

    async def test_duplicate_email_rejected(self, db_session, tenant):
        with pytest.raises(ValueError):
            await UserRepository(db_session).create_user({
                "email": tenant.email.upper(),
                "password": DEFAULT_PASSWORD,
                "first_name": "Tom",
                "last_name": "Twice",
            })


class TestBookingModel:

    async def test_nights_and_blocking(self, db_session, test_property, tenant):
        booking = await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15)
        )

        assert booking.nights == 5
        assert booking.is_blocking

        booking.status = BookingStatus.CANCELLED
        assert not booking.is_blocking

    async def test_end_must_follow_start(self, db_session, test_property, tenant):
        with pytest.raises(IntegrityError):
            await BookingFactory.create_booking(
                db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 10)
            )

    async def test_deleting_user_removes_their_bookings(self, db_session, test_property, tenant):
        await BookingFactory.create_booking(
            db_session, test_property, tenant, date(2024, 6, 10), date(2024, 6, 15),
            status=BookingStatus.APPROVED
        )

        await UserRepository(db_session).delete(tenant)

        remaining = await db_session.execute(select(func.count(Booking.id)))
        assert remaining.scalar() == 0


class TestFavoriteModel:

    async def test_one_favorite_per_user_and_property(self, db_session, test_property, tenant):
        repo = FavoriteRepository(db_session)
        await repo.create({"user_id": tenant.id, "property_id": test_property.id})

        with pytest.raises(IntegrityError):
            await repo.create({"user_id": tenant.id, "property_id": test_property.id})

        count = await db_session.execute(select(func.count(Favorite.id)))
        assert count.scalar() == 1
