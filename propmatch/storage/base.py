"""
Object store capability used by the property service.
Backends upload bytes to a bucket-relative path and hand back a public URL.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import unquote, urlsplit

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """
    Base class for image object stores.

    Paths are bucket-relative (``<property_id>/<object name>``). Public URLs
    are ``<public_base_url>/<bucket>/<path>``, which makes every URL issued by
    the store reversible into the path it was uploaded to.
    """

    def __init__(self, bucket: str, public_base_url: str):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        """
        Store ``content`` at ``path`` without overwriting.

        Returns:
            Public URL of the stored object

        Raises:
            UploadFailureError: If the store rejects the object
        """

    @abstractmethod
    async def delete(self, path: str) -> None:
        """
        Remove the object at ``path``.

        Raises:
            CleanupFailureError: If the store could not remove the object
        """

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{path}"

    def path_from_url(self, url: str) -> Optional[str]:
        """
        Recover the bucket-relative path from a public URL.

        Returns None for URLs this store did not issue.
        """
        try:
            parts = urlsplit(url)
            base = urlsplit(self.public_base_url)
        except ValueError:
            return None

        if (parts.scheme, parts.netloc) != (base.scheme, base.netloc):
            return None

        prefix = f"{base.path.rstrip('/')}/{self.bucket}/"
        if not parts.path.startswith(prefix):
            return None

        path = unquote(parts.path[len(prefix):])
        if not path or ".." in path.split("/"):
            return None
        return path
