"""
File upload utilities for property images and avatars.
Validates uploads with Pillow and stores them under the upload directory.
"""

import io
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from sharenest.config import settings
from sharenest.utils.exceptions import (
    FileSizeExceededError,
    FileUploadError,
    UnsupportedFileTypeError,
)


class UploadedImage:
    """A validated upload held in memory."""

    def __init__(self, filename: str, content: bytes, mime_type: str, width: int, height: int):
        self.filename = filename
        self.content = content
        self.mime_type = mime_type
        self.width = width
        self.height = height

    @property
    def size(self) -> int:
        return len(self.content)


class ImageValidator:
    """Validation of uploaded image files."""

    # MIME type -> (extensions, Pillow format)
    SUPPORTED_FORMATS = {
        "image/jpeg": ([".jpg", ".jpeg"], "JPEG"),
        "image/png": ([".png"], "PNG"),
        "image/webp": ([".webp"], "WEBP"),
    }

    MIN_WIDTH = 100
    MIN_HEIGHT = 100
    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    @classmethod
    async def validate_upload(cls, file: UploadFile, max_size: Optional[int] = None) -> UploadedImage:
        """
        Check declared type, extension, size and actual image content.

        Args:
            file: FastAPI UploadFile object
            max_size: Byte limit, defaults to the configured max_file_size

        Returns:
            UploadedImage with content and dimensions

        Raises:
            UnsupportedFileTypeError: If type or extension is not allowed
            FileSizeExceededError: If the file is too large
            FileUploadError: If the content is not a readable image of the declared type
        """
        if not file.filename:
            raise FileUploadError("Filename is required")

        mime_type = file.content_type or ""
        allowed = [t for t in settings.allowed_file_types if t in cls.SUPPORTED_FORMATS]
        if mime_type not in allowed:
            raise UnsupportedFileTypeError(mime_type or "unknown", allowed)

        extensions, pil_format = cls.SUPPORTED_FORMATS[mime_type]
        extension = Path(file.filename).suffix.lower()
        if extension not in extensions:
            raise FileUploadError(f"File extension '{extension}' doesn't match MIME type '{mime_type}'")

        content = await file.read()
        limit = max_size or settings.max_file_size
        if not content:
            raise FileUploadError("File is empty")
        if len(content) > limit:
            raise FileSizeExceededError(len(content), limit)

        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                actual_format = img.format
        except (UnidentifiedImageError, OSError) as e:
            raise FileUploadError(f"Invalid image file: {e}")

        if actual_format != pil_format:
            raise FileUploadError(f"Image content '{actual_format}' doesn't match MIME type '{mime_type}'")

        if not (cls.MIN_WIDTH <= width <= cls.MAX_WIDTH and cls.MIN_HEIGHT <= height <= cls.MAX_HEIGHT):
            raise FileUploadError(
                f"Image dimensions {width}x{height} must be between "
                f"{cls.MIN_WIDTH}x{cls.MIN_HEIGHT} and {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}"
            )

        return UploadedImage(file.filename, content, mime_type, width, height)


class FileStorage:
    """Stores files below a base directory using relative paths."""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def property_image_path(self, property_id: uuid.UUID, filename: str) -> str:
        """Unique relative path for a new image of a property."""
        extension = Path(filename).suffix.lower()
        return f"properties/{property_id}/{uuid.uuid4().hex}{extension}"

    def profile_image_path(self, user_id: uuid.UUID, filename: str) -> str:
        extension = Path(filename).suffix.lower()
        return f"users/{user_id}/{uuid.uuid4().hex}{extension}"

    async def save(self, relative_path: str, content: bytes) -> Path:
        target = self.base_dir / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(content)
        return target

    def delete(self, relative_path: str) -> bool:
        """Remove a stored file; False when it was already gone."""
        target = self.base_dir / relative_path
        try:
            os.remove(target)
            return True
        except FileNotFoundError:
            return False

    def exists(self, relative_path: str) -> bool:
        return (self.base_dir / relative_path).is_file()
