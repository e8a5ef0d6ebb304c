"""
Base repository class with common CRUD operations using async SQLAlchemy.
Concrete repositories add the queries specific to their aggregate.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sharenest.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Write operations commit the session and roll it back on failure.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance

        Raises:
            SQLAlchemyError: If the insert or commit fails
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise
        await self.db.refresh(db_obj)
        logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
        return db_obj

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """Get a record by its ID, or None."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        obj = result.scalar_one_or_none()
        if obj is None:
            logger.debug(f"{self.model.__name__} with id {id} not found")
        return obj

    async def update(self, db_obj: ModelType, changes: Dict[str, Any]) -> ModelType:
        """
        Apply field changes to a loaded instance and commit.

        Args:
            db_obj: Instance previously loaded through this session
            changes: Mapping of attribute name to new value

        Returns:
            The refreshed instance
        """
        for field, value in changes.items():
            setattr(db_obj, field, value)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__} {db_obj.id}: {e}")
            raise
        await self.db.refresh(db_obj)
        logger.debug(f"Updated {self.model.__name__} with id: {db_obj.id}")
        return db_obj

    async def delete(self, db_obj: ModelType) -> None:
        """Delete a loaded instance and commit."""
        try:
            await self.db.delete(db_obj)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {db_obj.id}: {e}")
            raise
        logger.debug(f"Deleted {self.model.__name__} with id: {db_obj.id}")
