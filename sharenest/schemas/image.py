"""
Pydantic schemas for property images.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
import uuid


class PropertyImageResponse(BaseModel):
    """Uploaded image metadata with its public URL."""

    id: uuid.UUID
    property_id: uuid.UUID
    filename: str
    url: str
    file_size: int
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None
    is_primary: bool
    display_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ImageUploadResponse(BaseModel):
    images: List[PropertyImageResponse]
    message: str


class ImageOrderRequest(BaseModel):
    """Every image id of the property, in the desired order."""

    image_ids: List[uuid.UUID] = Field(..., min_length=1)
