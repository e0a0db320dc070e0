"""
Initial lookup data for the property form.
"""

import logging
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from propmatch.repositories.property import PropertyTypeRepository, PropertyTagRepository

logger = logging.getLogger(__name__)

DEFAULT_PROPERTY_TYPES = ["Apartment", "House", "Duplex", "Villa", "Studio", "Penthouse"]

DEFAULT_PROPERTY_TAGS = [
    "Pet friendly",
    "Furnished",
    "Parking",
    "Balcony",
    "Garden",
    "Sea view",
    "Near metro",
]


async def seed_lookup_data(session: AsyncSession) -> Dict[str, int]:
    """
    Insert the default property types and tags that are missing.
    Safe to run repeatedly.

    Returns:
        Number of rows inserted per lookup table
    """
    inserted = {
        "property_types": await PropertyTypeRepository(session).ensure_names(DEFAULT_PROPERTY_TYPES),
        "tags": await PropertyTagRepository(session).ensure_names(DEFAULT_PROPERTY_TAGS),
    }
    logger.info(f"Lookup data seeded: {inserted}")
    return inserted
