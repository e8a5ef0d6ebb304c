"""
Test configuration and fixtures for the ShareNest API.
Provides database fixtures, test data factories, a recording notifier and a fixed clock.
"""

import os
import tempfile

# Settings are read once at import time, so the environment must be ready first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="sharenest-uploads-"))
os.environ.setdefault("MAIL_ENABLED", "false")

import io
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sharenest.main import app
from sharenest.database import Base, enable_sqlite_foreign_keys, get_db
from sharenest.models.booking import Booking, BookingStatus
from sharenest.models.property import Property, PropertyCategory
from sharenest.models.user import User, UserRole
from sharenest.repositories.booking import BookingRepository
from sharenest.repositories.property import PropertyRepository
from sharenest.repositories.user import UserRepository
from sharenest.utils.auth import create_access_token
from sharenest.utils.dependencies import get_clock, get_notifier


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Every booking test runs on this day
TODAY = date(2024, 6, 1)

DEFAULT_PASSWORD = "testpassword123"


def fixed_clock() -> date:
    return TODAY


class RecordingNotifier:
    """Notifier double that keeps every message instead of sending it."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    async def send(self, to: str, subject: str, template: str, context: Dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append({"to": to, "subject": subject, "template": template, "context": context})

    def by_template(self, template: str) -> List[Dict[str, Any]]:
        return [message for message in self.sent if message["template"] == template]


@pytest.fixture
async def engine():
    """Fresh database per test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        test_engine = create_async_engine(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False}
        )
    else:
        test_engine = create_async_engine(TEST_DATABASE_URL)
    enable_sqlite_foreign_keys(test_engine.sync_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def client(session_factory, notifier: RecordingNotifier) -> AsyncGenerator[AsyncClient, None]:
    """Async client against the app with database, notifier and clock overridden."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_clock] = lambda: fixed_clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        first_name: str = "Test",
        last_name: str = "User",
        role: UserRole = UserRole.TENANT,
        phone: Optional[str] = None,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "phone": phone,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(session: AsyncSession, **kwargs) -> User:
        return await UserRepository(session).create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        title: str = "Sunny room in Kreuzberg",
        description: str = "Bright private room in a shared flat close to the canal.",
        category: PropertyCategory = PropertyCategory.PRIVATE_ROOM,
        city: str = "Berlin",
        price: Decimal = Decimal("650.00"),
        bedrooms: int = 1,
        bathrooms: int = 1,
        available_from: date = date(2024, 6, 1),
        available_to: Optional[date] = date(2024, 8, 31),
        is_active: bool = True
    ) -> dict:
        return {
            "title": title,
            "description": description,
            "category": category,
            "city": city,
            "postcode": "10999",
            "address": f"Paul-Lincke-Ufer 20, {city}",
            "price": price,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "amenities": ["wifi"],
            "available_from": available_from,
            "available_to": available_to,
            "is_active": is_active
        }

    @staticmethod
    async def create_property(session: AsyncSession, owner: User, **kwargs) -> Property:
        data = PropertyFactory.create_property_data(**kwargs)
        data["owner_id"] = owner.id
        return await PropertyRepository(session).create(data)


class BookingFactory:
    """Factory for bookings stored directly, bypassing the request rules."""

    @staticmethod
    async def create_booking(
        session: AsyncSession,
        property_obj: Property,
        tenant: User,
        start_date: date,
        end_date: date,
        status: BookingStatus = BookingStatus.PENDING,
        message: Optional[str] = None
    ) -> Booking:
        return await BookingRepository(session).create({
            "property_id": property_obj.id,
            "tenant_id": tenant.id,
            "start_date": start_date,
            "end_date": end_date,
            "status": status,
            "message": message
        })


def auth_headers(user: User, role: Optional[UserRole] = None) -> Dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email, role=role or user.role)
    return {"Authorization": f"Bearer {token}"}


def make_image_bytes(image_format: str = "PNG", size=(200, 150)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(52, 152, 219)).save(buffer, format=image_format)
    return buffer.getvalue()


# Common test fixtures
@pytest.fixture
async def landlord(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(
        db_session,
        email="landlord@example.com",
        first_name="Lena",
        last_name="Vogel",
        role=UserRole.LANDLORD,
        phone="+49 30 5550100"
    )


@pytest.fixture
async def tenant(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(
        db_session,
        email="tenant@example.com",
        first_name="Tom",
        last_name="Berger",
        role=UserRole.TENANT
    )


@pytest.fixture
async def other_tenant(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(
        db_session,
        email="other.tenant@example.com",
        first_name="Olga",
        last_name="Meier",
        role=UserRole.TENANT
    )


@pytest.fixture
async def other_landlord(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(
        db_session,
        email="other.landlord@example.com",
        first_name="Otto",
        last_name="Kraus",
        role=UserRole.LANDLORD
    )


@pytest.fixture
async def test_property(db_session: AsyncSession, landlord: User) -> Property:
    """Available 2024-06-01 to 2024-08-31."""
    return await PropertyFactory.create_property(db_session, landlord)


@pytest.fixture
async def inactive_property(db_session: AsyncSession, landlord: User) -> Property:
    return await PropertyFactory.create_property(db_session, landlord, title="Closed flat", is_active=False)
