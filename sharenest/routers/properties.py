"""
Property API endpoints: listing management, search, images and favorites.
"""

from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from typing import List, Optional
from uuid import UUID
import math

from sharenest.models.property import PropertyCategory
from sharenest.models.user import User
from sharenest.services.image import ImageService
from sharenest.services.property import PropertyService
from sharenest.schemas.image import ImageOrderRequest, ImageUploadResponse, PropertyImageResponse
from sharenest.schemas.property import (
    CategoryCount,
    CityCount,
    PriceRange,
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertySearchParams,
    PropertyUpdate,
)
from sharenest.schemas.error import get_common_error_responses
from sharenest.utils.dependencies import (
    get_current_user,
    get_image_service,
    get_optional_current_user,
    get_property_service,
)


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a listing. Requires the landlord role.",
    responses=get_common_error_responses(401, 403, 422)
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.create_property(property_data, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="Search properties",
    description="Paginated search over active listings, newest first",
    responses=get_common_error_responses(422)
)
async def list_properties(
    query: Optional[str] = Query(None, max_length=255, description="Search in title and description"),
    category: Optional[PropertyCategory] = Query(None, description="Kind of space"),
    city: Optional[str] = Query(None, max_length=120, description="City filter"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price"),
    min_bedrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bedrooms"),
    min_bathrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bathrooms"),
    available_from: Optional[date] = Query(None, description="Stay start the listing must cover"),
    available_to: Optional[date] = Query(None, description="Stay end the listing must cover"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(20, ge=1, le=100, description="Number of properties per page"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    params = PropertySearchParams(
        query=query,
        category=category,
        city=city,
        min_price=min_price,
        max_price=max_price,
        min_bedrooms=min_bedrooms,
        min_bathrooms=min_bathrooms,
        available_from=available_from,
        available_to=available_to,
        page=page,
        page_size=page_size,
    )
    properties, total = await property_service.search_properties(params)

    return PropertyListResponse(
        items=[PropertyResponse.model_validate(p) for p in properties],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total > 0 else 1
    )


@router.get(
    "/featured",
    response_model=List[PropertyResponse],
    summary="Featured properties",
    description="The newest active listings"
)
async def list_featured_properties(
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.list_featured()
    return [PropertyResponse.model_validate(p) for p in properties]


@router.get(
    "/categories",
    response_model=List[CategoryCount],
    summary="Listing categories",
    description="Number of active listings per category"
)
async def list_categories(
    property_service: PropertyService = Depends(get_property_service)
) -> List[CategoryCount]:
    return await property_service.list_categories()


@router.get(
    "/cities",
    response_model=List[CityCount],
    summary="Listing cities",
    description="Number of active listings per city"
)
async def list_cities(
    property_service: PropertyService = Depends(get_property_service)
) -> List[CityCount]:
    return await property_service.list_cities()


@router.get(
    "/price-range",
    response_model=PriceRange,
    summary="Price range",
    description="Minimum, maximum and average price of active listings"
)
async def get_price_range(
    property_service: PropertyService = Depends(get_property_service)
) -> PriceRange:
    return await property_service.price_range()


@router.get(
    "/mine",
    response_model=List[PropertyResponse],
    summary="My listings",
    description="All listings of the current landlord, including inactive ones",
    responses=get_common_error_responses(401, 403)
)
async def list_my_properties(
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.list_owned(current_user)
    return [PropertyResponse.model_validate(p) for p in properties]


@router.get(
    "/favorites",
    response_model=List[PropertyResponse],
    summary="Saved listings",
    responses=get_common_error_responses(401)
)
async def list_favorites(
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.list_favorites(current_user)
    return [PropertyResponse.model_validate(p) for p in properties]


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get property by ID",
    responses=get_common_error_responses(404)
)
async def get_property(
    property_id: UUID,
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(property_id, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    description="Partial update. Only the owner may change a listing.",
    responses=get_common_error_responses(400, 401, 403, 404, 422)
)
async def update_property(
    property_id: UUID,
    property_data: PropertyUpdate,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Remove a listing together with its images and bookings. Owner only.",
    responses=get_common_error_responses(401, 403, 404)
)
async def delete_property(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> None:
    await property_service.delete_property(property_id, current_user)


@router.get(
    "/{property_id}/images",
    response_model=List[PropertyImageResponse],
    summary="List property images",
    responses=get_common_error_responses(404)
)
async def list_property_images(
    property_id: UUID,
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    images = await image_service.list_images(property_id)
    return [PropertyImageResponse.model_validate(image) for image in images]


@router.post(
    "/{property_id}/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload property images",
    description="Upload JPEG, PNG or WebP images. Owner only.",
    responses=get_common_error_responses(400, 401, 403, 404)
)
async def upload_property_images(
    property_id: UUID,
    files: List[UploadFile] = File(..., description="Image files to upload"),
    current_user: User = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    images = await image_service.upload_images(property_id, files, current_user)
    return ImageUploadResponse(
        images=[PropertyImageResponse.model_validate(image) for image in images],
        message=f"Uploaded {len(images)} image(s)"
    )


@router.put(
    "/{property_id}/images/order",
    response_model=List[PropertyImageResponse],
    summary="Reorder property images",
    description="Set the display order of all images. The first one becomes primary. Owner only.",
    responses=get_common_error_responses(400, 401, 403, 404, 422)
)
async def reorder_property_images(
    property_id: UUID,
    order: ImageOrderRequest,
    current_user: User = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    images = await image_service.reorder_images(property_id, order.image_ids, current_user)
    return [PropertyImageResponse.model_validate(image) for image in images]


@router.delete(
    "/{property_id}/images/{image_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property image",
    responses=get_common_error_responses(401, 403, 404)
)
async def delete_property_image(
    property_id: UUID,
    image_id: UUID,
    current_user: User = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> None:
    await image_service.delete_image(property_id, image_id, current_user)


@router.post(
    "/{property_id}/favorite",
    response_model=PropertyResponse,
    summary="Save listing",
    description="Add a listing to the user's favorites. Saving twice has no effect.",
    responses=get_common_error_responses(401, 404)
)
async def add_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.add_favorite(property_id, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.delete(
    "/{property_id}/favorite",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove saved listing",
    responses=get_common_error_responses(401)
)
async def remove_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> None:
    await property_service.remove_favorite(property_id, current_user)
