"""
Pydantic schemas for property requests and responses.
Handles property create/update validation and response shapes.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal
import uuid


_OPTIONAL_TEXT_FIELDS = ("address", "city", "description")
_OPTIONAL_VALUE_FIELDS = ("property_type_id", "rate", "price", "bedrooms", "bathrooms")


class PropertyBase(BaseModel):
    """Optional property fields shared by create and update."""

    address: Optional[str] = Field(None, max_length=255, description="Street address")
    city: Optional[str] = Field(None, max_length=120, description="City")
    property_type_id: Optional[uuid.UUID] = Field(None, description="Property type lookup id")
    rate: Optional[int] = Field(None, ge=1, le=5, description="Rating from 1 to 5")
    price: Optional[Decimal] = Field(
        None,
        ge=0,
        le=Decimal("9999999999.99"),
        decimal_places=2,
        description="Price in local currency"
    )
    bedrooms: Optional[int] = Field(None, ge=0, le=100, description="Number of bedrooms")
    bathrooms: Optional[int] = Field(None, ge=0, le=100, description="Number of bathrooms")
    description: Optional[str] = Field(None, max_length=5000, description="Free-text description")
    tag_ids: Optional[List[uuid.UUID]] = Field(None, description="Tags to attach to the property")

    @field_validator(*_OPTIONAL_TEXT_FIELDS, *_OPTIONAL_VALUE_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Empty form inputs mean "no value"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(*_OPTIONAL_TEXT_FIELDS)
    @classmethod
    def strip_text(cls, v):
        return v.strip() if v is not None else v


class PropertyCreate(PropertyBase):
    """Schema for creating a new property."""

    title: str = Field(..., min_length=1, max_length=255, description="Property listing title")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        """Validate and clean title."""
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    def column_values(self) -> Dict[str, Any]:
        """Column values for the property row (tags are stored separately)."""
        return self.model_dump(exclude={"tag_ids"})

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Sunny loft near the river",
                "address": "12 Quay Street",
                "city": "Lisbon",
                "rate": 4,
                "price": 120.00,
                "bedrooms": 2,
                "bathrooms": 1,
                "description": "Open-plan loft with balcony."
            }
        }
    }


class PropertyUpdate(PropertyBase):
    """
    Schema for updating an existing property.
    Only fields the caller actually supplied are written.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255, description="Property listing title")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is None or not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    def column_values(self) -> Dict[str, Any]:
        """Supplied column values (tags are stored separately)."""
        return self.model_dump(exclude_unset=True, exclude={"tag_ids"})


class PropertyResponse(BaseModel):
    """Schema for property response data."""

    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    address: Optional[str] = None
    city: Optional[str] = None
    property_type_id: Optional[uuid.UUID] = None
    rate: Optional[int] = None
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    image_urls: List[str] = Field(default_factory=list)
    tag_ids: List[uuid.UUID] = Field(default_factory=list)


class PropertyListResponse(BaseModel):
    """Schema for a page of the caller's properties."""

    properties: List[PropertyResponse]
    total: int = Field(..., ge=0)
    skip: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)


class PropertyMutationResponse(BaseModel):
    """
    Result of a create, update or delete.
    ``redirect_to`` tells the caller where to navigate next.
    """

    message: str
    redirect_to: str = "/"
    property: Optional[PropertyResponse] = None
    removed_images: List[str] = Field(default_factory=list)
    failed_uploads: List[str] = Field(
        default_factory=list,
        description="Files skipped during an update because the object store rejected them"
    )


class LookupResponse(BaseModel):
    """Property type or tag entry."""

    id: uuid.UUID
    name: str
