"""
Review API endpoints.
"""

from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from sharenest.models.user import User
from sharenest.services.review import ReviewService
from sharenest.schemas.review import (
    LandlordReviewsResponse,
    PendingReview,
    PropertyReviewsResponse,
    ReviewCreate,
    ReviewResponse,
)
from sharenest.schemas.error import get_common_error_responses
from sharenest.utils.dependencies import get_current_user, get_review_service


router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a property",
    description="Allowed once per property, after an approved stay has ended.",
    responses=get_common_error_responses(401, 403, 404, 409, 422)
)
async def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    review = await review_service.create_review(review_data, current_user)
    return ReviewResponse.model_validate(review)


@router.get(
    "/property/{property_id}",
    response_model=PropertyReviewsResponse,
    summary="Reviews of a property",
    responses=get_common_error_responses(404)
)
async def list_property_reviews(
    property_id: UUID,
    review_service: ReviewService = Depends(get_review_service)
) -> PropertyReviewsResponse:
    reviews, average, count = await review_service.list_for_property(property_id)
    return PropertyReviewsResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        average_rating=average,
        count=count
    )


@router.get(
    "/user/{user_id}",
    response_model=LandlordReviewsResponse,
    summary="Reviews of a landlord",
    description="Reviews left on any property owned by the user, newest first",
    responses=get_common_error_responses(404)
)
async def list_landlord_reviews(
    user_id: UUID,
    review_service: ReviewService = Depends(get_review_service)
) -> LandlordReviewsResponse:
    reviews, average, count = await review_service.list_for_landlord(user_id)
    return LandlordReviewsResponse(
        landlord_id=user_id,
        items=[ReviewResponse.model_validate(r) for r in reviews],
        average_rating=average,
        count=count
    )


@router.get(
    "/pending",
    response_model=List[PendingReview],
    summary="Stays awaiting a review",
    responses=get_common_error_responses(401)
)
async def list_pending_reviews(
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service)
) -> List[PendingReview]:
    stays = await review_service.pending_reviews(current_user)
    return [
        PendingReview(
            booking_id=booking.id,
            property_id=booking.property_id,
            property_title=booking.property_rel.title,
            start_date=booking.start_date,
            end_date=booking.end_date
        )
        for booking in stays
    ]


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own review",
    responses=get_common_error_responses(401, 403, 404)
)
async def delete_review(
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service)
) -> None:
    await review_service.delete_review(review_id, current_user)
