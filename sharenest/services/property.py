"""
Property service for managing listings with ownership rules.
Handles CRUD operations, search, and favorites.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sharenest.config import settings
from sharenest.models.property import Property
from sharenest.models.user import User
from sharenest.repositories.property import FavoriteRepository, PropertyRepository, PropertySearchFilters
from sharenest.schemas.property import (
    CategoryCount,
    CityCount,
    PriceRange,
    PropertyCreate,
    PropertySearchParams,
    PropertyUpdate,
)
from sharenest.utils.exceptions import (
    BadRequestError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
    PropertyOwnershipError,
)
from sharenest.utils.file_utils import FileStorage
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyService:
    """
    Property service.
    Only landlords create listings; only the owner changes or removes one.
    Inactive listings are visible to their owner alone.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.favorite_repo = FavoriteRepository(db_session)
        self.storage = storage or FileStorage()

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a listing owned by the current landlord.

        Raises:
            InsufficientPermissionsError: If the user is not a landlord
        """
        if not current_user.is_landlord:
            raise InsufficientPermissionsError("create properties")

        create_data = property_data.model_dump()
        create_data["owner_id"] = current_user.id
        create_data["is_active"] = True

        property_obj = await self.property_repo.create(create_data)
        logger.info(f"Property created by {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
        return property_obj

    async def get_property(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> Property:
        """
        Get a listing. Inactive ones are only returned to their owner.

        Raises:
            PropertyNotFoundError: If missing or hidden from the caller
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if property_obj is None:
            raise PropertyNotFoundError()

        if not property_obj.is_active:
            if current_user is None or not property_obj.is_owned_by(current_user.id):
                raise PropertyNotFoundError()

        return property_obj

    async def _get_owned(self, property_id: uuid.UUID, current_user: User, action: str) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if property_obj is None:
            raise PropertyNotFoundError()
        if not property_obj.is_owned_by(current_user.id):
            logger.warning(f"User {current_user.id} tried to {action} property {property_id} they don't own")
            raise PropertyOwnershipError()
        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Apply a partial update.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            PropertyOwnershipError: If the caller is not the owner
            BadRequestError: If the merged availability window is inverted
        """
        property_obj = await self._get_owned(property_id, current_user, "update")

        changes = property_data.model_dump(exclude_unset=True)
        available_from = changes.get("available_from", property_obj.available_from)
        available_to = changes.get("available_to", property_obj.available_to)
        if available_to is not None and available_to < available_from:
            raise BadRequestError("available_to cannot be before available_from", error_code="INVALID_AVAILABILITY")

        if not changes:
            return property_obj

        updated = await self.property_repo.update(property_obj, changes)
        logger.info(f"Property updated by {current_user.email}: {property_id} ({sorted(changes)})")
        return updated

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Delete a listing together with its image files.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            PropertyOwnershipError: If the caller is not the owner
        """
        property_obj = await self._get_owned(property_id, current_user, "delete")
        image_paths = [image.file_path for image in property_obj.images]

        await self.property_repo.delete(property_obj)

        for path in image_paths:
            self.storage.delete(path)
        logger.info(f"Property deleted by {current_user.email}: {property_id} (with {len(image_paths)} images)")

    async def search_properties(self, params: PropertySearchParams) -> Tuple[List[Property], int]:
        """Search active listings. Returns (page items, total count)."""
        filters = PropertySearchFilters(
            query=params.query,
            category=params.category,
            city=params.city,
            min_price=params.min_price,
            max_price=params.max_price,
            min_bedrooms=params.min_bedrooms,
            min_bathrooms=params.min_bathrooms,
            available_from=params.available_from,
            available_to=params.available_to,
            is_active=True,
        )
        skip = (params.page - 1) * params.page_size
        return await self.property_repo.search_properties(filters, skip=skip, limit=params.page_size)

    async def list_featured(self) -> List[Property]:
        return await self.property_repo.list_featured(settings.featured_limit)

    async def list_categories(self) -> List[CategoryCount]:
        rows = await self.property_repo.count_by_category()
        return [CategoryCount(category=category, count=count) for category, count in rows]

    async def list_cities(self) -> List[CityCount]:
        rows = await self.property_repo.count_by_city()
        return [CityCount(city=city, count=count) for city, count in rows]

    async def price_range(self) -> PriceRange:
        """Lowest, highest and rounded average price over active listings."""
        lowest, highest, average = await self.property_repo.price_statistics()
        return PriceRange(
            min=float(lowest or 0),
            max=float(highest or 0),
            avg=round(average or 0)
        )

    async def list_owned(self, current_user: User) -> List[Property]:
        if not current_user.is_landlord:
            raise InsufficientPermissionsError("list owned properties")
        return await self.property_repo.list_by_owner(current_user.id)

    async def add_favorite(self, property_id: uuid.UUID, current_user: User) -> Property:
        """Save a listing for the user. Saving twice is harmless."""
        property_obj = await self.get_property(property_id, current_user)
        if await self.favorite_repo.get_for_user(current_user.id, property_id) is None:
            await self.favorite_repo.create({"user_id": current_user.id, "property_id": property_id})
            logger.info(f"User {current_user.id} saved property {property_id}")
        return property_obj

    async def remove_favorite(self, property_id: uuid.UUID, current_user: User) -> None:
        favorite = await self.favorite_repo.get_for_user(current_user.id, property_id)
        if favorite is not None:
            await self.favorite_repo.delete(favorite)

    async def list_favorites(self, current_user: User) -> List[Property]:
        return await self.favorite_repo.list_properties_for_user(current_user.id)
