"""
Lookup endpoints for the property form's select options.
"""

from fastapi import APIRouter, Depends, status
from typing import List

from propmatch.services.property import PropertyService
from propmatch.schemas.property import LookupResponse
from propmatch.schemas.error import get_error_responses
from propmatch.utils.dependencies import get_property_service


router = APIRouter(tags=["Lookups"])


@router.get(
    "/property-types",
    response_model=List[LookupResponse],
    status_code=status.HTTP_200_OK,
    summary="List property types",
    responses=get_error_responses(401)
)
async def list_property_types(
    property_service: PropertyService = Depends(get_property_service)
) -> List[LookupResponse]:
    types = await property_service.list_property_types()
    return [LookupResponse.model_validate(t.to_dict()) for t in types]


@router.get(
    "/property-tags",
    response_model=List[LookupResponse],
    status_code=status.HTTP_200_OK,
    summary="List property tags",
    responses=get_error_responses(401)
)
async def list_property_tags(
    property_service: PropertyService = Depends(get_property_service)
) -> List[LookupResponse]:
    tags = await property_service.list_property_tags()
    return [LookupResponse.model_validate(t.to_dict()) for t in tags]
