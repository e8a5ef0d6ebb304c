"""
Review service. Tenants may review a property once, after a completed approved stay.
"""

from datetime import date
from typing import Callable, List, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sharenest.models.booking import Booking
from sharenest.models.review import Review
from sharenest.models.user import User
from sharenest.repositories.booking import BookingRepository
from sharenest.repositories.property import PropertyRepository
from sharenest.repositories.review import ReviewRepository
from sharenest.repositories.user import UserRepository
from sharenest.schemas.review import ReviewCreate
from sharenest.services.booking_rules import utc_today
from sharenest.utils.exceptions import (
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
    PropertyNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ReviewService:

    def __init__(self, db_session: AsyncSession, clock: Callable[[], date] = utc_today):
        self.db = db_session
        self.review_repo = ReviewRepository(db_session)
        self.booking_repo = BookingRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.clock = clock

    async def create_review(self, data: ReviewCreate, current_user: User) -> Review:
        """
        Raises:
            PropertyNotFoundError: If the property doesn't exist
            ForbiddenError: If the user has no completed stay there
            DuplicateResourceError: If the user already reviewed it
        """
        if await self.property_repo.get_by_id(data.property_id) is None:
            raise PropertyNotFoundError()

        if not await self.booking_repo.has_completed_stay(current_user.id, data.property_id, self.clock()):
            raise ForbiddenError(
                "You can only review properties you have stayed at",
                error_code="REVIEW_NOT_ALLOWED"
            )

        if await self.review_repo.get_by_reviewer_and_property(current_user.id, data.property_id):
            raise DuplicateResourceError("You have already reviewed this property")

        try:
            review = await self.review_repo.create({
                "property_id": data.property_id,
                "reviewer_id": current_user.id,
                "rating": data.rating,
                "comment": data.comment,
            })
        except IntegrityError:
            raise DuplicateResourceError("You have already reviewed this property")

        logger.info(f"Review {review.id} ({review.rating}/5) for property {data.property_id} by {current_user.id}")
        return review

    async def list_for_property(self, property_id: uuid.UUID) -> Tuple[List[Review], float, int]:
        if await self.property_repo.get_by_id(property_id) is None:
            raise PropertyNotFoundError()
        reviews = await self.review_repo.list_for_property(property_id)
        average, count = await self.review_repo.rating_summary(property_id)
        return reviews, average, count

    async def list_for_landlord(self, user_id: uuid.UUID) -> Tuple[List[Review], float, int]:
        """
        Reviews received on the properties a user owns.

        Raises:
            NotFoundError: If the user doesn't exist
        """
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError("User not found", error_code="USER_NOT_FOUND")
        reviews = await self.review_repo.list_for_owner(user_id)
        average, count = await self.review_repo.owner_rating_summary(user_id)
        return reviews, average, count

    async def pending_reviews(self, current_user: User) -> List[Booking]:
        """Completed stays of the user still waiting for a review, one per property."""
        stays = await self.booking_repo.list_unreviewed_stays(current_user.id, self.clock())
        pending = {}
        for booking in stays:
            pending.setdefault(booking.property_id, booking)
        return list(pending.values())

    async def delete_review(self, review_id: uuid.UUID, current_user: User) -> None:
        review = await self.review_repo.get_by_id(review_id)
        if review is None:
            raise NotFoundError("Review not found", error_code="REVIEW_NOT_FOUND")
        if review.reviewer_id != current_user.id:
            raise ForbiddenError("You can only delete your own reviews", error_code="REVIEW_ACCESS_DENIED")
        await self.review_repo.delete(review)
        logger.info(f"Review {review_id} deleted by {current_user.id}")
