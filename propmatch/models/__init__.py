"""
Database models for PropMatch.
Includes Property, PropertyType, PropertyTag and PropertyImage models.
"""

from propmatch.models.property import Property, PropertyType, PropertyTag, property_tags
from propmatch.models.image import PropertyImage

__all__ = [
    "Property",
    "PropertyType",
    "PropertyTag",
    "property_tags",
    "PropertyImage",
]
