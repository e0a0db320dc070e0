"""
File upload utilities for image validation and storage naming.
Provides the in-memory image type handed to the property service and the
helpers that validate it and derive collision-resistant object paths.
"""

import io
import secrets
import string
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional
from PIL import Image, UnidentifiedImageError
from fastapi import UploadFile

from propmatch.config import get_settings
from propmatch.utils.exceptions import ValidationError

settings = get_settings()

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class ImageUpload:
    """An image file received from the caller, fully read into memory."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()

    @classmethod
    async def from_upload_file(cls, file: UploadFile) -> "ImageUpload":
        """Read a FastAPI UploadFile into an ImageUpload."""
        await file.seek(0)
        content = await file.read()
        return cls(
            filename=file.filename or "",
            content=content,
            content_type=file.content_type
        )


def filter_valid_images(files: Optional[Iterable[ImageUpload]]) -> List[ImageUpload]:
    """Drop empty file inputs; browsers submit a zero-byte part for an untouched file field."""
    if not files:
        return []
    return [file for file in files if file is not None and file.size > 0]


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their extensions
    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp']
    }

    MIME_ALIASES = {
        'image/jpg': 'image/jpeg',
        'image/pjpeg': 'image/jpeg',
    }

    # Pillow format name for each MIME type
    PIL_FORMATS = {
        'image/jpeg': 'jpeg',
        'image/png': 'png',
        'image/webp': 'webp'
    }

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension.

        Args:
            filename: Name of the file

        Returns:
            Lowercase file extension

        Raises:
            ValidationError: If extension is missing or not supported
        """
        if not filename:
            raise ValidationError("Filename is required")

        extension = Path(filename).suffix.lower()

        if not extension:
            raise ValidationError(f"File '{filename}' must have an extension")

        supported_extensions = [ext for exts in cls.SUPPORTED_FORMATS.values() for ext in exts]

        if extension not in supported_extensions:
            raise ValidationError(
                f"File extension '{extension}' not supported. "
                f"Supported extensions: {', '.join(supported_extensions)}"
            )

        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: str, allowed_types: Optional[List[str]] = None) -> str:
        """
        Validate MIME type, normalising common aliases.

        Raises:
            ValidationError: If MIME type is not supported
        """
        if not mime_type:
            raise ValidationError("MIME type is required")

        mime_type = cls.MIME_ALIASES.get(mime_type, mime_type)
        allowed = allowed_types or settings.allowed_file_types

        if mime_type not in cls.SUPPORTED_FORMATS or mime_type not in allowed:
            raise ValidationError(
                f"MIME type '{mime_type}' not supported. "
                f"Supported types: {', '.join(allowed)}"
            )

        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        """
        Validate file size.

        Raises:
            ValidationError: If file size exceeds limit
        """
        max_allowed = max_size or settings.max_file_size
        if file_size > max_allowed:
            max_mb = max_allowed / (1024 * 1024)
            actual_mb = file_size / (1024 * 1024)
            raise ValidationError(
                f"File size ({actual_mb:.1f}MB) exceeds maximum allowed size ({max_mb:.1f}MB)"
            )

        return file_size

    @classmethod
    def validate_image(cls, image: ImageUpload) -> str:
        """
        Comprehensive validation of an uploaded image.

        Args:
            image: Image read from the request

        Returns:
            Normalised MIME type of the image

        Raises:
            ValidationError: If any validation fails
        """
        extension = cls.validate_file_extension(image.filename)
        cls.validate_file_size(image.size)

        try:
            with Image.open(io.BytesIO(image.content)) as img:
                pil_format = (img.format or "").lower()
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"Invalid image file '{image.filename}': {str(e)}")

        # Declared type is optional; fall back to what Pillow detected
        declared = image.content_type
        if declared and declared != "application/octet-stream":
            mime_type = cls.validate_mime_type(declared)
        else:
            mime_type = next(
                (mime for mime, fmt in cls.PIL_FORMATS.items() if fmt == pil_format),
                ""
            )
            mime_type = cls.validate_mime_type(mime_type)

        if cls.PIL_FORMATS[mime_type] != pil_format:
            raise ValidationError(
                f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'"
            )

        if extension not in cls.SUPPORTED_FORMATS[mime_type]:
            raise ValidationError(
                f"File extension '{extension}' doesn't match MIME type '{mime_type}'"
            )

        return mime_type

    @classmethod
    def validate_images(cls, images: List[ImageUpload]) -> List[str]:
        """Validate every image, collecting all problems into one ValidationError."""
        mime_types = []
        field_errors = []

        for index, image in enumerate(images):
            try:
                mime_types.append(cls.validate_image(image))
            except ValidationError as e:
                field_errors.append({
                    "field": f"images -> {index}",
                    "message": e.detail,
                    "type": "image_invalid"
                })

        if field_errors:
            raise ValidationError(
                f"{len(field_errors)} image file(s) failed validation",
                field_errors=field_errors
            )

        return mime_types


def generate_object_name(filename: str) -> str:
    """
    Generate a collision-resistant object name keeping the original extension.

    Format: ``<epoch milliseconds>-<random suffix><extension>``.
    """
    extension = Path(filename).suffix.lower()
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(12))
    return f"{int(time.time() * 1000)}-{suffix}{extension}"


def build_object_path(property_id: uuid.UUID, filename: str) -> str:
    """Object path namespaced by property id."""
    return f"{property_id}/{generate_object_name(filename)}"
