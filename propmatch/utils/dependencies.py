"""
FastAPI dependency injection utilities.
Builds the per-request property service from the request's database session,
bearer token and the application-wide collaborators kept on ``app.state``.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from propmatch.database import get_db
from propmatch.services.cleanup import CleanupScheduler
from propmatch.services.events import PropertyEventBus
from propmatch.services.property import PropertyService, Identity
from propmatch.storage.base import ObjectStore
from propmatch.utils.auth import TokenIdentity
from propmatch.utils.cache import ListingCache


# HTTP Bearer token security scheme; a missing token is reported by the service
security = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Identity:
    """
    Get the identity capability for the current request.

    Args:
        credentials: HTTP Bearer credentials (optional)

    Returns:
        Identity resolving to the token's user, or to None when unauthenticated
    """
    return TokenIdentity(credentials.credentials if credentials else None)


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def get_cleanup_scheduler(request: Request) -> CleanupScheduler:
    return request.app.state.cleanup


def get_event_bus(request: Request) -> PropertyEventBus:
    return request.app.state.events


def get_listing_cache(request: Request) -> ListingCache:
    return request.app.state.listing_cache


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    object_store: ObjectStore = Depends(get_object_store),
    identity: Identity = Depends(get_identity),
    cleanup: CleanupScheduler = Depends(get_cleanup_scheduler),
    events: PropertyEventBus = Depends(get_event_bus),
    listing_cache: ListingCache = Depends(get_listing_cache)
) -> PropertyService:
    """
    Get property service instance.

    Returns:
        PropertyService wired to this request's session and identity
    """
    return PropertyService(
        db,
        object_store=object_store,
        identity=identity,
        cleanup=cleanup,
        events=events,
        listing_cache=listing_cache
    )
