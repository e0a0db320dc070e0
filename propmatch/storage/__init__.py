"""
Object storage backends for property images.
"""

from propmatch.config import Settings
from propmatch.storage.base import ObjectStore
from propmatch.storage.local import LocalObjectStore


def build_object_store(settings: Settings) -> ObjectStore:
    """Construct the configured object store backend."""
    if settings.storage_backend == "s3":
        from propmatch.storage.s3 import S3ObjectStore

        return S3ObjectStore(
            bucket=settings.storage_bucket,
            public_base_url=settings.storage_public_base_url,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            cache_control=settings.storage_cache_control,
        )

    return LocalObjectStore(
        upload_dir=settings.upload_dir,
        bucket=settings.storage_bucket,
        public_base_url=settings.storage_public_base_url,
    )


__all__ = ["ObjectStore", "LocalObjectStore", "build_object_store"]
