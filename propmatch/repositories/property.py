"""
Property repository: the relational store for property rows, tag links and lookups.
Every mutating query is filtered by the owning user's id.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, insert, func, and_
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

from propmatch.models.property import Property, PropertyType, PropertyTag, property_tags
from propmatch.repositories.base import BaseRepository, ModelType

logger = logging.getLogger(__name__)


class PropertyRepository(BaseRepository[Property]):
    """Repository for owner-scoped property operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def insert_property(
        self,
        owner_id: uuid.UUID,
        fields: Dict[str, Any],
        tag_ids: Optional[List[uuid.UUID]] = None
    ) -> Property:
        """
        Insert a property row (and its tag links) in one transaction.

        Args:
            owner_id: Owning user id
            fields: Column values for the new row
            tag_ids: Optional tag ids to link

        Returns:
            The persisted property

        Raises:
            SQLAlchemyError: If the insert fails
        """
        try:
            property_obj = Property(owner_id=owner_id, **fields)
            self.db.add(property_obj)
            await self.db.flush()

            if tag_ids:
                await self._insert_tag_links(property_obj.id, tag_ids)

            await self.db.commit()
            await self.db.refresh(property_obj)
            logger.debug(f"Inserted property {property_obj.id} for owner {owner_id}")
            return property_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to insert property for owner {owner_id}: {e}")
            raise

    async def update_property(
        self,
        property_id: uuid.UUID,
        owner_id: uuid.UUID,
        fields: Dict[str, Any],
        tag_ids: Optional[List[uuid.UUID]] = None
    ) -> int:
        """
        Update a property row filtered by id and owner.

        When ``fields`` is empty only ownership is checked. Tag links are
        replaced when ``tag_ids`` is not None.

        Returns:
            Number of matching rows (0 when the property is missing or not owned)
        """
        try:
            if fields:
                stmt = (
                    update(Property)
                    .where(and_(Property.id == property_id, Property.owner_id == owner_id))
                    .values(**fields)
                    .execution_options(synchronize_session=False)
                )
                result = await self.db.execute(stmt)
                rowcount = result.rowcount
            else:
                rowcount = 1 if await self.exists_owned(property_id, owner_id) else 0

            if rowcount and tag_ids is not None:
                await self.db.execute(
                    delete(property_tags).where(property_tags.c.property_id == property_id)
                )
                if tag_ids:
                    await self._insert_tag_links(property_id, tag_ids)

            await self.db.commit()
            logger.debug(f"Updated property {property_id} for owner {owner_id}: {rowcount} row(s)")
            return rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update property {property_id}: {e}")
            raise

    async def delete_property(self, property_id: uuid.UUID, owner_id: uuid.UUID) -> int:
        """
        Delete a property row filtered by id and owner.
        Image rows and tag links go with it through ON DELETE CASCADE.

        Returns:
            Number of deleted rows
        """
        try:
            stmt = (
                delete(Property)
                .where(and_(Property.id == property_id, Property.owner_id == owner_id))
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(stmt)
            await self.db.commit()
            logger.debug(f"Deleted property {property_id} for owner {owner_id}: {result.rowcount} row(s)")
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise

    async def exists_owned(self, property_id: uuid.UUID, owner_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(func.count(Property.id)).where(
                and_(Property.id == property_id, Property.owner_id == owner_id)
            )
        )
        return bool(result.scalar())

    async def get_owned(self, property_id: uuid.UUID, owner_id: uuid.UUID) -> Optional[Property]:
        """
        Load a property with its images and tags, or None if missing or not owned.
        """
        query = (
            select(Property)
            .where(and_(Property.id == property_id, Property.owner_id == owner_id))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_owned(
        self,
        owner_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        Get an owner's properties, newest first.

        Returns:
            Tuple of (properties list, total count)
        """
        query = (
            select(Property)
            .where(Property.owner_id == owner_id)
            .order_by(Property.created_at.desc(), Property.id)
            .offset(skip)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        properties = list(result.scalars().all())

        total_count = await self.count({"owner_id": owner_id})

        logger.debug(f"Listed {len(properties)} of {total_count} properties for owner {owner_id}")
        return properties, total_count

    async def _insert_tag_links(self, property_id: uuid.UUID, tag_ids: List[uuid.UUID]) -> None:
        unique_ids = list(dict.fromkeys(tag_ids))
        await self.db.execute(
            insert(property_tags),
            [{"property_id": property_id, "tag_id": tag_id} for tag_id in unique_ids]
        )


class LookupRepository(BaseRepository[ModelType]):
    """Repository for name-only lookup tables."""

    async def list_all(self) -> List[ModelType]:
        return await self.get_multi(limit=1000, order_by="name")

    async def ensure_names(self, names: List[str]) -> int:
        """
        Insert any of ``names`` not already present.

        Returns:
            Number of rows inserted
        """
        try:
            result = await self.db.execute(select(self.model.name).where(self.model.name.in_(names)))
            existing = set(result.scalars().all())
            missing = [name for name in dict.fromkeys(names) if name not in existing]

            self.db.add_all([self.model(name=name) for name in missing])
            await self.db.commit()

            if missing:
                logger.info(f"Seeded {len(missing)} {self.model.__tablename__} row(s)")
            return len(missing)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to seed {self.model.__tablename__}: {e}")
            raise


class PropertyTypeRepository(LookupRepository[PropertyType]):
    """Repository for the property type lookup table."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyType, db)


class PropertyTagRepository(LookupRepository[PropertyTag]):
    """Repository for the property tag lookup table."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyTag, db)
