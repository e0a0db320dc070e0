"""
Property management API endpoints.
Create and update accept multipart forms so images travel with the property fields.
"""

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from typing import Any, Dict, List, Optional

from propmatch.config import settings
from propmatch.models.property import Property
from propmatch.services.property import PropertyService
from propmatch.schemas.property import (
    PropertyResponse,
    PropertyListResponse,
    PropertyMutationResponse
)
from propmatch.schemas.error import get_error_responses
from propmatch.utils.dependencies import get_property_service
from propmatch.utils.file_utils import ImageUpload


router = APIRouter(prefix="/properties", tags=["Properties"])


def _to_response(property_obj: Property) -> PropertyResponse:
    return PropertyResponse.model_validate(property_obj.to_dict())


def _supplied(**form_values: Any) -> Dict[str, Any]:
    """Keep only the form fields the client actually sent."""
    return {name: value for name, value in form_values.items() if value is not None}


def _clean_list(values: Optional[List[str]]) -> Optional[List[str]]:
    # A single blank entry is how a form says "empty list"
    if values is None:
        return None
    return [value for value in values if value and value.strip()]


async def _read_images(images: Optional[List[UploadFile]]) -> List[ImageUpload]:
    return [await ImageUpload.from_upload_file(image) for image in images or []]


@router.post(
    "",
    response_model=PropertyMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a property owned by the caller, uploading its images in the same request.",
    responses=get_error_responses(401, 422, 500, 502)
)
async def create_property(
    title: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    property_type_id: Optional[str] = Form(None),
    rate: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    bedrooms: Optional[str] = Form(None),
    bathrooms: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tag_ids: Optional[List[str]] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMutationResponse:
    """
    Create a new property listing.

    Form values arrive as strings and are validated by the service, after the
    caller's identity has been checked.

    Raises:
        AuthenticationRequiredError: If no valid bearer token is sent
        ValidationError: If a field or image is malformed
        UploadFailureError: If an image could not be stored (nothing is kept)
        PersistenceFailureError: If the database rejects the property
    """
    fields = _supplied(
        title=title,
        address=address,
        city=city,
        property_type_id=property_type_id,
        rate=rate,
        price=price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        description=description,
        tag_ids=_clean_list(tag_ids)
    )

    property_obj = await property_service.create_property(fields, await _read_images(images))

    return PropertyMutationResponse(
        message="Property created successfully",
        property=_to_response(property_obj)
    )


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List my properties",
    description="Get a page of the caller's properties, newest first.",
    responses=get_error_responses(401)
)
async def list_properties(
    skip: int = Query(0, ge=0, description="Number of properties to skip"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Page size"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    return await property_service.list_properties(skip=skip, limit=limit)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property details",
    responses=get_error_responses(401, 404)
)
async def get_property(
    property_id: str = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(property_id)
    return _to_response(property_obj)


@router.put(
    "/{property_id}",
    response_model=PropertyMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description=(
        "Update supplied fields of a property the caller owns, remove listed images "
        "and upload new ones. Images the store rejects are skipped and reported."
    ),
    responses=get_error_responses(401, 404, 422, 500)
)
async def update_property(
    property_id: str = Path(..., description="Property ID"),
    title: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    property_type_id: Optional[str] = Form(None),
    rate: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    bedrooms: Optional[str] = Form(None),
    bathrooms: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tag_ids: Optional[List[str]] = Form(None),
    deleted_images: Optional[List[str]] = Form(None, description="Image URLs to remove"),
    images: Optional[List[UploadFile]] = File(None),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMutationResponse:
    """
    Update property details and reconcile its images.

    Only fields present in the form are written; a blank optional field clears it.

    Raises:
        AuthenticationRequiredError: If no valid bearer token is sent
        NotFoundOrForbiddenError: If the caller owns no such property
        ValidationError: If a field or image is malformed
        PersistenceFailureError: If the database rejects the update
    """
    fields = _supplied(
        title=title,
        address=address,
        city=city,
        property_type_id=property_type_id,
        rate=rate,
        price=price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        description=description,
        tag_ids=_clean_list(tag_ids)
    )

    result = await property_service.update_property(
        property_id,
        fields,
        new_files=await _read_images(images),
        deleted_locations=_clean_list(deleted_images)
    )

    message = "Property updated successfully"
    if result.failed_uploads:
        message = f"Property updated; {len(result.failed_uploads)} image(s) could not be uploaded"

    return PropertyMutationResponse(
        message=message,
        property=_to_response(result.property),
        removed_images=result.removed_images,
        failed_uploads=result.failed_uploads
    )


@router.delete(
    "/{property_id}",
    response_model=PropertyMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete property",
    description="Delete a property the caller owns. Its images are removed in the background.",
    responses=get_error_responses(401, 404, 500)
)
async def delete_property(
    property_id: str = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMutationResponse:
    removed = await property_service.delete_property(property_id)

    return PropertyMutationResponse(
        message="Property deleted successfully",
        removed_images=removed
    )
