"""
Project persistence.

Best-effort snapshot writes of a SceneStore to Redis. Saves are scheduled in
the background so pipelines never wait on storage.
"""

import asyncio
from typing import Any, Dict, Optional, Set

from modules.scene_store.store import SceneStore
from shared.errors import RetryableError
from shared.logging import get_logger
from shared.redis_client import RedisClient

logger = get_logger("scene_store.persistence")


def sanitize(value: Any) -> Any:
    """Recursively drop None values from dicts (and dicts inside lists)."""
    if isinstance(value, dict):
        return {k: sanitize(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [sanitize(v) for v in value]
    return value


class ProjectPersistence:
    """Reads and writes project snapshots keyed by project ID."""

    def __init__(self, redis: RedisClient, ttl: Optional[int] = None):
        """
        Initialize persistence.

        Args:
            redis: Redis client
            ttl: Optional expiry for project records, in seconds
        """
        self.redis = redis
        self.ttl = ttl
        self._pending: Set["asyncio.Task[bool]"] = set()

    @staticmethod
    def key(project_id: str) -> str:
        return f"project:{project_id}"

    async def save(self, store: SceneStore) -> bool:
        """
        Write the store's current snapshot.

        Raises:
            RetryableError: If Redis write fails
        """
        return await self._write(store.project_id, sanitize(store.to_snapshot()))

    async def _write(self, project_id: str, snapshot: Dict[str, Any]) -> bool:
        await self.redis.set_json(self.key(project_id), snapshot, ttl=self.ttl)
        logger.debug(
            f"Saved snapshot for project {project_id}",
            extra={"project_id": project_id},
        )
        return True

    async def _write_logged(self, project_id: str, snapshot: Dict[str, Any]) -> bool:
        try:
            return await self._write(project_id, snapshot)
        except Exception as e:
            logger.error(
                f"Failed to save snapshot for project {project_id}: {str(e)}",
                extra={"project_id": project_id, "error": str(e)},
            )
            return False

    def schedule_save(self, store: SceneStore) -> "asyncio.Task[bool]":
        """
        Save in the background. The snapshot is taken immediately; a failed
        write is logged and never raised to the caller.
        """
        snapshot = sanitize(store.to_snapshot())
        task = asyncio.get_running_loop().create_task(
            self._write_logged(store.project_id, snapshot)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all scheduled saves to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def load(self, project_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a project snapshot.

        Returns:
            Snapshot dict or None if the project has no record

        Raises:
            RetryableError: If Redis read fails
        """
        snapshot = await self.redis.get_json(self.key(project_id))
        if snapshot is not None and not isinstance(snapshot, dict):
            raise RetryableError(f"Corrupt project record for {project_id}")
        return snapshot

    async def restore(self, store: SceneStore) -> bool:
        """Load the store's project record into it. Returns False if none exists."""
        snapshot = await self.load(store.project_id)
        if snapshot is None:
            return False
        store.load_snapshot(snapshot)
        return True
