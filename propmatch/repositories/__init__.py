"""
Repository layer for data access operations.
"""

from propmatch.repositories.base import BaseRepository
from propmatch.repositories.property import PropertyRepository, PropertyTypeRepository, PropertyTagRepository
from propmatch.repositories.image import ImageRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PropertyTypeRepository",
    "PropertyTagRepository",
    "ImageRepository",
]
