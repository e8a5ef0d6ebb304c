"""
Property repository for listing management and search.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from sharenest.repositories.base import BaseRepository
from sharenest.models.property import Property, PropertyCategory
from sharenest.models.review import Favorite
from typing import Optional, List, Tuple
from datetime import date
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        query: Optional[str] = None,
        category: Optional[PropertyCategory] = None,
        city: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_bedrooms: Optional[int] = None,
        min_bathrooms: Optional[int] = None,
        available_from: Optional[date] = None,
        available_to: Optional[date] = None,
        is_active: Optional[bool] = True
    ):
        self.query = query
        self.category = category
        self.city = city
        self.min_price = min_price
        self.max_price = max_price
        self.min_bedrooms = min_bedrooms
        self.min_bathrooms = min_bathrooms
        self.available_from = available_from
        self.available_to = available_to
        self.is_active = is_active


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Search is paginated; landlord listings include inactive properties.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def get_for_update(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Load a property and lock its row until the transaction ends.
        Serializes concurrent booking requests against the same property.
        Backends without row locks (SQLite) ignore FOR UPDATE.
        """
        result = await self.db.execute(
            select(Property).where(Property.id == property_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering and pagination, newest first.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return

        Returns:
            Tuple of (properties list, total count)
        """
        query = select(Property)
        count_query = select(func.count(Property.id))

        conditions = self._build_filter_conditions(filters)
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        total_count = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(desc(Property.created_at)).offset(skip).limit(limit)
        result = await self.db.execute(query)
        properties = list(result.scalars().all())

        logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
        return properties, total_count

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        """Build SQLAlchemy filter conditions from search filters."""
        conditions = []

        if filters.is_active is not None:
            conditions.append(Property.is_active == filters.is_active)

        if filters.query:
            search_term = f"%{filters.query}%"
            conditions.append(
                or_(
                    Property.title.ilike(search_term),
                    Property.description.ilike(search_term)
                )
            )

        if filters.category:
            conditions.append(Property.category == filters.category)

        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.min_bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.min_bedrooms)
        if filters.min_bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.min_bathrooms)

        # Window must cover the requested dates; NULL available_to is open-ended
        if filters.available_from is not None:
            conditions.append(Property.available_from <= filters.available_from)
        if filters.available_to is not None:
            conditions.append(
                or_(
                    Property.available_to.is_(None),
                    Property.available_to >= filters.available_to
                )
            )

        return conditions

    async def list_featured(self, limit: int) -> List[Property]:
        """Newest active listings."""
        result = await self.db.execute(
            select(Property)
            .where(Property.is_active.is_(True))
            .order_by(desc(Property.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_category(self) -> List[Tuple[PropertyCategory, int]]:
        """Active listings per category, most common first."""
        listings = func.count(Property.id).label("listings")
        result = await self.db.execute(
            select(Property.category, listings)
            .where(Property.is_active.is_(True))
            .group_by(Property.category)
            .order_by(desc(listings), Property.category)
        )
        return [(row.category, row.listings) for row in result]

    async def count_by_city(self) -> List[Tuple[str, int]]:
        """Active listings per city, most common first."""
        listings = func.count(Property.id).label("listings")
        result = await self.db.execute(
            select(Property.city, listings)
            .where(Property.is_active.is_(True))
            .group_by(Property.city)
            .order_by(desc(listings), Property.city)
        )
        return [(row.city, row.listings) for row in result]

    async def price_statistics(self) -> Tuple[Optional[Decimal], Optional[Decimal], Optional[float]]:
        """Minimum, maximum and average price of active listings; all None without any."""
        result = await self.db.execute(
            select(func.min(Property.price), func.max(Property.price), func.avg(Property.price))
            .where(Property.is_active.is_(True))
        )
        lowest, highest, average = result.one()
        return lowest, highest, (float(average) if average is not None else None)

    async def list_by_owner(self, owner_id: uuid.UUID) -> List[Property]:
        """All properties of a landlord, active or not, newest first."""
        result = await self.db.execute(
            select(Property)
            .where(Property.owner_id == owner_id)
            .order_by(desc(Property.created_at))
        )
        return list(result.scalars().all())


class FavoriteRepository(BaseRepository[Favorite]):
    """Saved properties per user."""

    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)

    async def get_for_user(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Favorite]:
        result = await self.db.execute(
            select(Favorite).where(
                and_(Favorite.user_id == user_id, Favorite.property_id == property_id)
            )
        )
        return result.scalar_one_or_none()

    async def list_properties_for_user(self, user_id: uuid.UUID) -> List[Property]:
        result = await self.db.execute(
            select(Property)
            .join(Favorite, Favorite.property_id == Property.id)
            .where(Favorite.user_id == user_id)
            .order_by(desc(Favorite.created_at))
        )
        return list(result.scalars().all())
