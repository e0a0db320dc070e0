"""
Repository for PropertyImage rows: the image metadata store.
"""

import uuid
import logging
from typing import List
from sqlalchemy import select, delete, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from propmatch.models.image import PropertyImage
from propmatch.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def insert_image_rows(self, property_id: uuid.UUID, locations: List[str]) -> List[PropertyImage]:
        """
        Batch-insert one image row per location.

        Raises:
            SQLAlchemyError: If the insert fails (nothing is inserted)
        """
        if not locations:
            return []

        try:
            # New images go after the ones already attached
            result = await self.db.execute(
                select(func.coalesce(func.max(PropertyImage.position), -1))
                .where(PropertyImage.property_id == property_id)
            )
            start = result.scalar() + 1

            images = [
                PropertyImage(property_id=property_id, image_url=location, position=start + offset)
                for offset, location in enumerate(locations)
            ]
            self.db.add_all(images)
            await self.db.commit()
            logger.debug(f"Inserted {len(images)} image row(s) for property {property_id}")
            return images
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to insert image rows for property {property_id}: {e}")
            raise

    async def delete_image_rows_by_location(self, property_id: uuid.UUID, locations: List[str]) -> List[str]:
        """
        Delete the property's image rows whose location is in ``locations``.

        Locations belonging to other properties are left alone.

        Returns:
            The locations whose rows were removed
        """
        if not locations:
            return []

        condition = and_(
            PropertyImage.property_id == property_id,
            PropertyImage.image_url.in_(locations)
        )

        try:
            result = await self.db.execute(select(PropertyImage.image_url).where(condition))
            removed = list(dict.fromkeys(result.scalars().all()))

            await self.db.execute(
                delete(PropertyImage).where(condition).execution_options(synchronize_session=False)
            )
            await self.db.commit()
            logger.debug(f"Deleted {len(removed)} image row(s) for property {property_id}")
            return removed
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete image rows for property {property_id}: {e}")
            raise

    async def list_image_locations(self, property_id: uuid.UUID) -> List[str]:
        """All image locations recorded for a property."""
        result = await self.db.execute(
            select(PropertyImage.image_url)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.position)
        )
        return list(result.scalars().all())
