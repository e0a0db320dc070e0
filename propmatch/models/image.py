"""
PropertyImage model mapping a property to the public location of a stored image.
"""

from sqlalchemy import String, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from propmatch.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from propmatch.models.property import Property


class PropertyImage(Base):
    """
    Image metadata row. Lives only as long as its property (ON DELETE CASCADE).
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    image_url: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="Public location of the stored image file"
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Display order within the property"
    )

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images",
        lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation of the property image."""
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, image_url={self.image_url})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "image_url": self.image_url,
        }


# Batched deletes look rows up by location within a property
property_image_url_index = Index(
    'idx_property_images_property_url',
    PropertyImage.property_id,
    PropertyImage.image_url
)
