"""Per-project locks for the progress recompute."""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)


class ProjectLocks:
    """
    In-process lock registry keyed by project id.

    Task writes and the project progress recompute that follows them run under
    the project's lock, so two requests in the same worker never interleave a
    read-mean-write of the same project. Separate worker processes are not
    coordinated (last writer wins).
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def hold(self, project_id: int) -> AsyncIterator[None]:
        lock = self._locks[project_id]
        if lock.locked():
            logger.debug(f"Waiting for project lock: {project_id}")
        async with lock:
            yield

    def forget(self, project_id: int) -> None:
        """삭제된 프로젝트의 lock 정리"""
        lock = self._locks.get(project_id)
        if lock is not None and not lock.locked():
            del self._locks[project_id]


project_locks = ProjectLocks()
