"""
Property service: create, update and delete properties together with their images.

Each mutation coordinates three stores (property rows, image files in the
object store, image metadata rows) in an order that keeps every image row
pointing at a file that exists:

* create inserts the property first, uploads sequentially, and removes the
  property again if any upload or the image-row insert fails;
* update commits the field changes first, then reconciles images, skipping
  files the object store rejects;
* delete captures image locations, deletes the row (cascading to image rows)
  and then removes the files in the background.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Type, TypeVar, Union
import uuid
import logging

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from propmatch.models.property import Property, PropertyType, PropertyTag
from propmatch.repositories.property import PropertyRepository, PropertyTypeRepository, PropertyTagRepository
from propmatch.repositories.image import ImageRepository
from propmatch.schemas.property import PropertyCreate, PropertyUpdate, PropertyResponse, PropertyListResponse
from propmatch.services.cleanup import CleanupScheduler
from propmatch.services.error_handler import ErrorHandlerService
from propmatch.services.events import PropertyChanged, PropertyEventBus
from propmatch.storage.base import ObjectStore
from propmatch.utils.cache import ListingCache
from propmatch.utils.exceptions import (
    AuthenticationRequiredError,
    NotFoundOrForbiddenError,
    ValidationError,
    UploadFailureError,
    PersistenceFailureError,
    CleanupFailureError
)
from propmatch.utils.file_utils import ImageUpload, FileValidator, filter_valid_images, build_object_path

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)


class Identity(Protocol):
    """Resolves the acting user for the current request."""

    async def current_user(self) -> Optional[uuid.UUID]:
        ...


@dataclass
class PropertyUpdateResult:
    """Outcome of an update, including per-file image results."""

    property: Property
    added_images: List[str] = field(default_factory=list)
    removed_images: List[str] = field(default_factory=list)
    failed_uploads: List[str] = field(default_factory=list)


def _db_reason(error: SQLAlchemyError) -> str:
    return str(getattr(error, "orig", None) or error)


class PropertyService:
    """
    Orchestrates property mutations across the relational and object stores.

    All collaborators are passed in per request; nothing is shared globally
    except the cleanup scheduler, event bus and listing cache handed in by
    the caller.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        object_store: ObjectStore,
        identity: Identity,
        cleanup: CleanupScheduler,
        events: PropertyEventBus,
        listing_cache: Optional[ListingCache] = None
    ):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.image_repo = ImageRepository(db_session)
        self.type_repo = PropertyTypeRepository(db_session)
        self.tag_repo = PropertyTagRepository(db_session)
        self.object_store = object_store
        self.identity = identity
        self.cleanup = cleanup
        self.events = events
        self.listing_cache = listing_cache

    async def create_property(
        self,
        fields: Union[PropertyCreate, Dict[str, Any]],
        files: Optional[Sequence[ImageUpload]] = None
    ) -> Property:
        """
        Create a property with its images, all or nothing.

        Args:
            fields: Property fields (schema or raw mapping)
            files: Image files in display order; empty files are ignored

        Returns:
            The created property with images and tags loaded

        Raises:
            AuthenticationRequiredError: If no user is signed in
            ValidationError: If a field or image is malformed
            UploadFailureError: If the object store rejects an image
            PersistenceFailureError: If the database rejects a write
        """
        owner_id = await self._require_user()
        data = self._validate(PropertyCreate, fields)
        images = filter_valid_images(files)
        mime_types = FileValidator.validate_images(images)

        try:
            property_obj = await self.property_repo.insert_property(owner_id, data.column_values(), data.tag_ids)
        except SQLAlchemyError as e:
            raise PersistenceFailureError("create property", _db_reason(e)) from e

        property_id = property_obj.id
        uploaded: List[str] = []

        if images:
            try:
                # Sequential on purpose: a failure at index k means exactly 0..k-1 were stored
                for image, mime_type in zip(images, mime_types):
                    path = build_object_path(property_id, image.filename)
                    uploaded.append(await self._upload(path, image, mime_type))

                await self.image_repo.insert_image_rows(property_id, uploaded)
            except Exception as e:
                await self._compensate_create(property_id, owner_id, uploaded)
                if isinstance(e, SQLAlchemyError):
                    raise PersistenceFailureError("save image records", _db_reason(e)) from e
                raise

        logger.info(f"Property created by user {owner_id}: {data.title} (ID: {property_id}, {len(uploaded)} images)")
        self.events.publish(PropertyChanged(action="created", property_id=property_id, owner_id=owner_id))

        return await self._load_owned(property_id, owner_id)

    async def update_property(
        self,
        property_id: Union[uuid.UUID, str],
        fields: Union[PropertyUpdate, Dict[str, Any], None] = None,
        new_files: Optional[Sequence[ImageUpload]] = None,
        deleted_locations: Optional[Sequence[str]] = None
    ) -> PropertyUpdateResult:
        """
        Update a caller-owned property and reconcile its images.

        The field update is committed first and is never undone by image
        problems: rejected uploads are skipped and reported, failed removals
        are logged.

        Raises:
            AuthenticationRequiredError: If no user is signed in
            ValidationError: If a field or image is malformed
            NotFoundOrForbiddenError: If the caller owns no such property
            PersistenceFailureError: If the property row update fails
        """
        owner_id = await self._require_user()
        data = self._validate(PropertyUpdate, fields if fields is not None else {})
        images = filter_valid_images(new_files)
        mime_types = FileValidator.validate_images(images)
        property_uuid = self._parse_property_id(property_id)
        to_remove = list(dict.fromkeys(location for location in (deleted_locations or []) if location))

        try:
            rowcount = await self.property_repo.update_property(
                property_uuid, owner_id, data.column_values(), data.tag_ids
            )
        except SQLAlchemyError as e:
            raise PersistenceFailureError("update property", _db_reason(e)) from e

        if not rowcount:
            raise NotFoundOrForbiddenError("Property", str(property_id))

        removed_images = await self._remove_images(property_uuid, to_remove)
        added_images: List[str] = []
        uploaded_names: List[str] = []
        failed_uploads: List[str] = []

        for image, mime_type in zip(images, mime_types):
            path = build_object_path(property_uuid, image.filename)
            try:
                added_images.append(await self._upload(path, image, mime_type))
                uploaded_names.append(image.filename)
            except UploadFailureError as e:
                logger.warning(f"Skipping image for property {property_uuid}: {e.detail}")
                failed_uploads.append(image.filename)

        if added_images:
            try:
                await self.image_repo.insert_image_rows(property_uuid, added_images)
            except SQLAlchemyError as e:
                logger.error(f"Failed to save image records for property {property_uuid}: {_db_reason(e)}")
                for location in added_images:
                    self.cleanup.schedule_delete(self.object_store, location)
                failed_uploads.extend(uploaded_names)
                added_images = []

        logger.info(
            f"Property updated by user {owner_id}: {property_uuid} "
            f"(+{len(added_images)} / -{len(removed_images)} images, "
            f"{len(failed_uploads)} skipped)"
        )
        self.events.publish(PropertyChanged(action="updated", property_id=property_uuid, owner_id=owner_id))

        return PropertyUpdateResult(
            property=await self._load_owned(property_uuid, owner_id),
            added_images=added_images,
            removed_images=removed_images,
            failed_uploads=failed_uploads
        )

    async def delete_property(self, property_id: Union[uuid.UUID, str]) -> List[str]:
        """
        Delete a caller-owned property and schedule removal of its image files.

        Returns:
            The image locations whose files were scheduled for deletion

        Raises:
            AuthenticationRequiredError: If no user is signed in
            NotFoundOrForbiddenError: If the caller owns no such property
            PersistenceFailureError: If the database rejects the delete
        """
        owner_id = await self._require_user()
        property_uuid = self._parse_property_id(property_id)

        try:
            # Read first: the cascade makes these rows unrecoverable
            locations = await self.image_repo.list_image_locations(property_uuid)
            rowcount = await self.property_repo.delete_property(property_uuid, owner_id)
        except SQLAlchemyError as e:
            raise PersistenceFailureError("delete property", _db_reason(e)) from e

        if not rowcount:
            raise NotFoundOrForbiddenError("Property", str(property_id))

        for location in locations:
            self.cleanup.schedule_delete(self.object_store, location)

        logger.info(f"Property deleted by user {owner_id}: {property_uuid} (with {len(locations)} images)")
        self.events.publish(PropertyChanged(action="deleted", property_id=property_uuid, owner_id=owner_id))
        return locations

    async def get_property(self, property_id: Union[uuid.UUID, str]) -> Property:
        """Get one of the caller's properties with images and tags."""
        owner_id = await self._require_user()
        return await self._load_owned(self._parse_property_id(property_id), owner_id)

    async def list_properties(self, skip: int = 0, limit: int = 20) -> PropertyListResponse:
        """
        Get a page of the caller's properties, newest first.
        Pages are cached per owner until the owner's next mutation.
        """
        owner_id = await self._require_user()
        page_key = (skip, limit)

        if self.listing_cache is not None:
            cached = self.listing_cache.get(owner_id, page_key)
            if cached is not None:
                return cached

        properties, total_count = await self.property_repo.list_owned(owner_id, skip=skip, limit=limit)
        page = PropertyListResponse(
            properties=[PropertyResponse.model_validate(p.to_dict()) for p in properties],
            total=total_count,
            skip=skip,
            limit=limit
        )

        if self.listing_cache is not None:
            self.listing_cache.set(owner_id, page_key, page)

        return page

    async def list_property_types(self) -> List[PropertyType]:
        await self._require_user()
        return await self.type_repo.list_all()

    async def list_property_tags(self) -> List[PropertyTag]:
        await self._require_user()
        return await self.tag_repo.list_all()

    # Private helpers

    async def _require_user(self) -> uuid.UUID:
        user_id = await self.identity.current_user()
        if user_id is None:
            raise AuthenticationRequiredError("You must be logged in to manage properties")
        return user_id

    @staticmethod
    def _validate(schema: Type[SchemaType], fields: Union[SchemaType, Dict[str, Any]]) -> SchemaType:
        if isinstance(fields, schema):
            return fields

        try:
            return schema.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid property data",
                field_errors=ErrorHandlerService.extract_field_errors(e.errors())
            )

    @staticmethod
    def _parse_property_id(property_id: Union[uuid.UUID, str]) -> uuid.UUID:
        if isinstance(property_id, uuid.UUID):
            return property_id
        try:
            return uuid.UUID(str(property_id))
        except ValueError:
            # A malformed id cannot name an owned property
            raise NotFoundOrForbiddenError("Property", str(property_id))

    async def _load_owned(self, property_id: uuid.UUID, owner_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_owned(property_id, owner_id)
        if property_obj is None:
            raise NotFoundOrForbiddenError("Property", str(property_id))
        return property_obj

    async def _upload(self, path: str, image: ImageUpload, mime_type: str) -> str:
        try:
            return await self.object_store.upload(path, image.content, mime_type)
        except UploadFailureError as e:
            raise UploadFailureError(image.filename, e.reason) from e
        except Exception as e:
            raise UploadFailureError(image.filename, f"{type(e).__name__}: {e}") from e

    async def _compensate_create(self, property_id: uuid.UUID, owner_id: uuid.UUID, uploaded: List[str]) -> None:
        """Undo a half-finished create: drop the row, then the files already stored."""
        logger.warning(f"Rolling back property {property_id}: image persistence failed after {len(uploaded)} upload(s)")

        try:
            await self.property_repo.delete_property(property_id, owner_id)
        except SQLAlchemyError as e:
            logger.error(f"Compensating delete of property {property_id} failed: {_db_reason(e)}")

        for location in uploaded:
            self.cleanup.schedule_delete(self.object_store, location)

    async def _remove_images(self, property_id: uuid.UUID, locations: List[str]) -> List[str]:
        """Delete metadata rows now, files in the background. Failures are logged only."""
        if not locations:
            return []

        try:
            removed = await self.image_repo.delete_image_rows_by_location(property_id, locations)
        except SQLAlchemyError as e:
            logger.warning(str(CleanupFailureError(f"image records of property {property_id}", _db_reason(e))))
            return []

        for location in removed:
            self.cleanup.schedule_delete(self.object_store, location)

        ignored = len(locations) - len(removed)
        if ignored:
            logger.warning(f"Ignored {ignored} image location(s) not attached to property {property_id}")

        return removed
