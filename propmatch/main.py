"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
from pathlib import Path
import logging

from propmatch.config import settings
from propmatch.database import AsyncSessionLocal, test_database_connection, create_tables, close_db_connection
from propmatch.routers import properties_router, lookups_router
from propmatch.seed import seed_lookup_data
from propmatch.services.cleanup import CleanupScheduler
from propmatch.services.events import PropertyChanged, PropertyEventBus
from propmatch.services.error_handler import ErrorHandlerService
from propmatch.storage import build_object_store
from propmatch.utils.cache import ListingCache
from propmatch.utils.exceptions import APIException

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}, storage backend: {settings.storage_backend}")

    if settings.auto_create_tables:
        await create_tables()
        async with AsyncSessionLocal() as session:
            await seed_lookup_data(session)

    db_connected = await test_database_connection()
    if not db_connected:
        logger.error("Failed to connect to database on startup")

    yield

    # Shutdown
    logger.info("Shutting down application")
    pending = app.state.cleanup.pending
    if pending:
        logger.info(f"Waiting for {pending} image cleanup task(s)")
    await app.state.cleanup.wait_idle()
    await close_db_connection()


# Create FastAPI application instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Owner-scoped property management API.

    ## Features

    * **Properties**: create, update and delete your own listings
    * **Images**: upload images with a property; they are stored in an object store
      and removed again when the property or image is deleted
    * **Lookups**: property types and tags for the property form

    ## Authentication

    Every endpoint requires a bearer token issued by the identity provider.
    Include it in the Authorization header as `Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Properties",
            "description": "Property listing management with images"
        },
        {
            "name": "Lookups",
            "description": "Property types and tags"
        },
        {
            "name": "Health",
            "description": "System health endpoints"
        }
    ],
    lifespan=lifespan,
)

# Application-wide collaborators shared by every request
app.state.object_store = build_object_store(settings)
app.state.cleanup = CleanupScheduler()
app.state.events = PropertyEventBus()
app.state.listing_cache = ListingCache()


def _invalidate_owner_listings(event: PropertyChanged) -> None:
    app.state.listing_cache.invalidate_owner(event.owner_id)


app.state.events.subscribe(_invalidate_owner_listings)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(properties_router, prefix=settings.api_v1_prefix)
app.include_router(lookups_router, prefix=settings.api_v1_prefix)

# The local backend serves stored images itself
if settings.storage_backend == "local":
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    app.mount(settings.storage_public_path, StaticFiles(directory=settings.upload_dir), name="storage")


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors from reads, which the service does not wrap."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle FastAPI HTTP exceptions with structured error responses."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint providing basic API information.
    Mutation responses redirect clients here.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@app.get(f"{settings.api_v1_prefix}/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by container health checks and load balancers.
    """
    db_healthy = await test_database_connection()

    if not db_healthy:
        raise HTTPException(
            status_code=503,
            detail="Database connection failed"
        )

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected",
        "storage_backend": settings.storage_backend,
        "pending_cleanups": app.state.cleanup.pending
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "propmatch.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
