"""
Test configuration and fixtures for the PropMatch API.
Provides an in-memory database, fake object store and identity, and image factories.
"""

import io
import os
import tempfile
import uuid
from typing import AsyncGenerator, Dict, List, Optional, Set

# Settings are read at import time, so the environment must be prepared first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="propmatch-test-")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CACHE_ENABLED"] = "true"

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from propmatch.database import build_engine, create_tables, get_db
from propmatch.main import app
from propmatch.models.property import PropertyType, PropertyTag
from propmatch.repositories.property import PropertyTypeRepository, PropertyTagRepository
from propmatch.seed import seed_lookup_data
from propmatch.services.cleanup import CleanupScheduler
from propmatch.services.events import PropertyChanged, PropertyEventBus
from propmatch.services.property import PropertyService
from propmatch.storage.base import ObjectStore
from propmatch.utils.auth import create_access_token
from propmatch.utils.cache import ListingCache
from propmatch.utils.dependencies import (
    get_object_store,
    get_cleanup_scheduler,
    get_event_bus,
    get_listing_cache
)
from propmatch.utils.exceptions import UploadFailureError, CleanupFailureError
from propmatch.utils.file_utils import ImageUpload


class InMemoryObjectStore(ObjectStore):
    """Object store double that keeps objects in a dict and can simulate outages."""

    def __init__(self):
        super().__init__(bucket="property-images", public_base_url="http://storage.test/storage")
        self.objects: Dict[str, bytes] = {}
        self.upload_calls: List[str] = []
        self.deleted: List[str] = []
        self.fail_upload_at: Set[int] = set()
        self.fail_deletes = False

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        call_index = len(self.upload_calls)
        self.upload_calls.append(path)

        if call_index in self.fail_upload_at:
            raise UploadFailureError(path, "simulated storage outage")
        if path in self.objects:
            raise UploadFailureError(path, "object already exists")

        self.objects[path] = content
        return self.public_url(path)

    async def delete(self, path: str) -> None:
        if self.fail_deletes:
            raise CleanupFailureError(path, "simulated storage outage")
        if path not in self.objects:
            raise CleanupFailureError(path, "object does not exist")

        del self.objects[path]
        self.deleted.append(path)


class FakeIdentity:
    """Identity double returning a fixed user id (or None for anonymous)."""

    def __init__(self, user_id: Optional[uuid.UUID]):
        self.user_id = user_id

    async def current_user(self) -> Optional[uuid.UUID]:
        return self.user_id


def make_image(
    filename: str = "photo.png",
    image_format: str = "PNG",
    size=(8, 8),
    color=(200, 80, 40),
    content_type: Optional[str] = "image/png"
) -> ImageUpload:
    """Build a small, genuinely decodable image upload."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return ImageUpload(filename=filename, content=buffer.getvalue(), content_type=content_type)


def make_jpeg(filename: str = "photo.jpg") -> ImageUpload:
    return make_image(filename=filename, image_format="JPEG", content_type="image/jpeg")


# Database fixtures
@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    test_engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def lookups(db_session: AsyncSession) -> Dict[str, List]:
    """Seeded property types and tags."""
    await seed_lookup_data(db_session)
    types: List[PropertyType] = await PropertyTypeRepository(db_session).list_all()
    tags: List[PropertyTag] = await PropertyTagRepository(db_session).list_all()
    return {"types": types, "tags": tags}


# Collaborator fixtures
@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def other_user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def cleanup() -> CleanupScheduler:
    return CleanupScheduler()


@pytest.fixture
def listing_cache() -> ListingCache:
    return ListingCache(enabled=True, ttl_seconds=60, max_size=100)


@pytest.fixture
def published() -> List[PropertyChanged]:
    """Events received by a recording subscriber."""
    return []


@pytest.fixture
def events(listing_cache: ListingCache, published: List[PropertyChanged]) -> PropertyEventBus:
    bus = PropertyEventBus()
    bus.subscribe(lambda event: listing_cache.invalidate_owner(event.owner_id))
    bus.subscribe(published.append)
    return bus


@pytest.fixture
def service_for(db_session, object_store, cleanup, events, listing_cache):
    """Factory building a property service acting as the given user."""
    def _build(user_id: Optional[uuid.UUID]) -> PropertyService:
        return PropertyService(
            db_session,
            object_store=object_store,
            identity=FakeIdentity(user_id),
            cleanup=cleanup,
            events=events,
            listing_cache=listing_cache
        )
    return _build


@pytest.fixture
def property_service(service_for, owner_id) -> PropertyService:
    """Property service acting as ``owner_id``."""
    return service_for(owner_id)


# API fixtures
@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    object_store: InMemoryObjectStore,
    cleanup: CleanupScheduler,
    events: PropertyEventBus,
    listing_cache: ListingCache
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database and storage overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_cleanup_scheduler] = lambda: cleanup
    app.dependency_overrides[get_event_bus] = lambda: events
    app.dependency_overrides[get_listing_cache] = lambda: listing_cache

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(owner_id: uuid.UUID) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


@pytest.fixture
def other_auth_headers(other_user_id: uuid.UUID) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user_id)}"}
