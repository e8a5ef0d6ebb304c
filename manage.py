#!/usr/bin/env python3
"""
Database management commands: create or drop the schema and seed demo data.

Usage:
    python manage.py create-tables
    python manage.py drop-tables --confirm
    python manage.py seed
"""

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from sharenest.config import settings
from sharenest.database import AsyncSessionLocal, close_db_connection, create_tables, drop_tables
from sharenest.models.property import Property, PropertyCategory
from sharenest.models.user import User, UserRole
from sharenest.services.booking_rules import utc_today

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SEED_PASSWORD = "sharenest123"

SEED_USERS = [
    {"email": "landlord@sharenest.app", "first_name": "Lena", "last_name": "Vogel",
     "role": UserRole.LANDLORD, "phone": "+49 30 5550100"},
    {"email": "tenant@sharenest.app", "first_name": "Tom", "last_name": "Berger",
     "role": UserRole.TENANT, "phone": None},
]

SEED_PROPERTIES = [
    {
        "title": "Sunny room in Kreuzberg",
        "description": "Bright private room in a shared flat, five minutes from the canal and the U-Bahn.",
        "category": PropertyCategory.PRIVATE_ROOM,
        "city": "Berlin",
        "postcode": "10999",
        "address": "Paul-Lincke-Ufer 20, 10999 Berlin",
        "price": Decimal("650.00"),
        "bedrooms": 1,
        "bathrooms": 1,
        "size": 18,
        "amenities": ["wifi", "washing_machine"],
    },
    {
        "title": "Summer sublet near Sternschanze",
        "description": "Whole two-room flat available over the summer, furnished, with a small balcony.",
        "category": PropertyCategory.SUBLET,
        "city": "Hamburg",
        "postcode": "20357",
        "address": "Schanzenstrasse 41, 20357 Hamburg",
        "price": Decimal("1100.00"),
        "bedrooms": 2,
        "bathrooms": 1,
        "size": 54,
        "amenities": ["wifi", "balcony", "dishwasher"],
    },
]


async def seed_database() -> None:
    """Insert demo users and listings unless they already exist."""
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == SEED_USERS[0]["email"]))
        if result.scalar_one_or_none():
            logger.info("Seed data already present, skipping")
            return

        users = {}
        for data in SEED_USERS:
            user = User(is_active=True, is_verified=True, **data)
            user.set_password(SEED_PASSWORD)
            session.add(user)
            users[user.role] = user
        await session.flush()

        today = utc_today()
        for index, data in enumerate(SEED_PROPERTIES):
            session.add(Property(
                owner_id=users[UserRole.LANDLORD].id,
                available_from=today,
                available_to=None if index == 0 else today + timedelta(days=90),
                is_active=True,
                **data
            ))

        try:
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    logger.info("Database seeded successfully")
    for data in SEED_USERS:
        logger.info(f"  {data['role'].value}: {data['email']} / {SEED_PASSWORD}")
    logger.warning("Seed accounts share a known password; do not seed production databases")


async def run(command: str, confirm: bool = False) -> int:
    try:
        if command == "create-tables":
            await create_tables()
        elif command == "drop-tables":
            if not confirm:
                logger.error("drop-tables requires --confirm")
                return 2
            await drop_tables()
        elif command == "seed":
            await seed_database()
    finally:
        await close_db_connection()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=f"{settings.app_name} database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all tables")
    drop_parser = subparsers.add_parser("drop-tables", help="Drop all tables (development and testing only)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping every table")
    subparsers.add_parser("seed", help="Insert demo users and listings")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return

    try:
        exit_code = asyncio.run(run(args.command, confirm=getattr(args, "confirm", False)))
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
