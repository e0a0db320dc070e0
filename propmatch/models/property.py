"""
Property model for agent listings.
Handles property data, ownership, lookup types and tag associations.
"""

from sqlalchemy import String, Text, Integer, Numeric, Index, ForeignKey, CheckConstraint, Table, Column, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from propmatch.database import Base
from decimal import Decimal
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from propmatch.models.image import PropertyImage


# Many-to-many join between properties and tags
property_tags = Table(
    "property_tags",
    Base.metadata,
    Column("property_id", Uuid(as_uuid=True), ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid(as_uuid=True), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class PropertyType(Base):
    """Lookup table for property types (apartment, house, ...)."""

    __tablename__ = "property_types"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": str(self.id), "name": self.name}


class PropertyTag(Base):
    """Lookup table for property tags (pet friendly, furnished, ...)."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": str(self.id), "name": self.name}


class Property(Base):
    """
    Property listing owned by exactly one user.
    Images and tag links are removed by the database when the row is deleted.
    """

    __tablename__ = "properties"
    __table_args__ = (
        CheckConstraint("rate >= 1 AND rate <= 5", name="ck_properties_rate_range"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
        comment="Identity provider user id of the owning agent"
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Property listing title"
    )

    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)

    property_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("property_types.id"),
        nullable=True
    )

    rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Rating from 1 to 5")

    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=12, scale=2), nullable=True)

    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships (rows are removed by ON DELETE CASCADE, not by the ORM)
    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        lazy="selectin",
        passive_deletes=True,
        order_by="PropertyImage.position"
    )

    tags: Mapped[List[PropertyTag]] = relationship(
        PropertyTag,
        secondary=property_tags,
        lazy="selectin",
        passive_deletes=True,
        order_by=PropertyTag.name
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}, owner_id={self.owner_id})>"

    @property
    def image_urls(self) -> List[str]:
        return [image.image_url for image in self.images]

    @property
    def tag_ids(self) -> List[uuid.UUID]:
        return [tag.id for tag in self.tags]

    def to_dict(self) -> dict:
        """
        Convert property to dictionary.

        Returns:
            Dictionary representation of property with image URLs and tag ids
        """
        return {
            "id": str(self.id),
            "owner_id": str(self.owner_id),
            "title": self.title,
            "address": self.address,
            "city": self.city,
            "property_type_id": str(self.property_type_id) if self.property_type_id else None,
            "rate": self.rate,
            "price": float(self.price) if self.price is not None else None,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "image_urls": self.image_urls,
            "tag_ids": [str(tag_id) for tag_id in self.tag_ids],
        }


# Owner dashboard listing: newest first per owner
owner_created_index = Index(
    'idx_properties_owner_created',
    Property.owner_id,
    Property.created_at.desc()
)
