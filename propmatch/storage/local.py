"""
Filesystem object store.
Objects live under ``<upload_dir>/<bucket>/`` and are served by the static mount.
"""

import logging
from pathlib import Path
from typing import Optional
import aiofiles
import aiofiles.os

from propmatch.storage.base import ObjectStore
from propmatch.utils.exceptions import UploadFailureError, CleanupFailureError

logger = logging.getLogger(__name__)


class LocalObjectStore(ObjectStore):
    """Object store writing files to a local directory."""

    def __init__(self, upload_dir: str, bucket: str, public_base_url: str):
        super().__init__(bucket, public_base_url)
        self.root = Path(upload_dir) / bucket

    def _file_path(self, path: str) -> Path:
        return self.root / path

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        file_path = self._file_path(path)

        try:
            await aiofiles.os.makedirs(file_path.parent, exist_ok=True)
            # "xb" refuses to overwrite an existing object
            async with aiofiles.open(file_path, "xb") as f:
                await f.write(content)
        except FileExistsError:
            raise UploadFailureError(path, "object already exists")
        except OSError as e:
            if await aiofiles.os.path.exists(file_path):
                await aiofiles.os.remove(file_path)
            raise UploadFailureError(path, str(e))

        logger.debug(f"Stored {len(content)} bytes at {file_path}")
        return self.public_url(path)

    async def delete(self, path: str) -> None:
        file_path = self._file_path(path)

        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            raise CleanupFailureError(path, "object does not exist")
        except OSError as e:
            raise CleanupFailureError(path, str(e))

        logger.debug(f"Removed {file_path}")
