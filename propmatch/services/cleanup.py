"""
Fire-and-forget removal of stored image files.
Deletions run as background asyncio tasks whose failures are only logged.
"""

import asyncio
import logging
from typing import Set

from propmatch.storage.base import ObjectStore
from propmatch.utils.exceptions import CleanupFailureError

logger = logging.getLogger(__name__)


class CleanupScheduler:
    """
    Submits best-effort file deletions without blocking the caller.

    Tasks are tracked until they finish so they are not garbage collected
    mid-flight and so shutdown (and tests) can wait for them.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule_delete(self, object_store: ObjectStore, location: str) -> asyncio.Task:
        """Queue deletion of the file behind a public location and return immediately."""
        task = asyncio.create_task(self._delete(object_store, location))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _delete(self, object_store: ObjectStore, location: str) -> bool:
        try:
            path = object_store.path_from_url(location)
            if path is None:
                raise CleanupFailureError(location, "location is not managed by this object store")
            await object_store.delete(path)
            logger.debug(f"Removed stored image {path}")
            return True
        except CleanupFailureError as e:
            logger.warning(str(e))
        except Exception as e:
            logger.warning(str(CleanupFailureError(location, f"{type(e).__name__}: {e}")))
        return False

    async def wait_idle(self) -> None:
        """Wait until every scheduled deletion has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
