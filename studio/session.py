"""
Project session.

Wires one store, its persistence, the three pipeline coordinators and the
timeline engine for an open project, and tears them down on close.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from modules.pipelines import CombinePipeline, ImagePipeline, VideoPipeline, get_backend
from modules.poller import Poller
from modules.scene_store import ProjectPersistence, SceneStore
from modules.timeline import MediaElement, TimelineEngine
from shared.credit_tracking import CreditTracker
from shared.errors import RetryableError
from shared.generation_client import GenerationClient
from shared.logging import get_logger
from shared.models.job import JobKind
from shared.redis_client import RedisClient
from studio.services.credit_helpers import (
    CREDIT_COSTS,
    estimate_generation_minutes,
    estimate_project_credits,
    format_minutes,
    get_video_cost,
)
from studio.services.event_publisher import publish_event

logger = get_logger(__name__)

EventSink = Callable[[str, str, Dict[str, Any]], Awaitable[Any]]


class ProjectSession:
    """Everything needed to generate and play back one project."""

    def __init__(
        self,
        project_id: str,
        user_id: Optional[str] = None,
        client: Optional[GenerationClient] = None,
        redis: Optional[RedisClient] = None,
        poller: Optional[Poller] = None,
        video_backend: Optional[str] = None,
        video_element: Optional[MediaElement] = None,
        audio_element: Optional[MediaElement] = None,
        events: Optional[EventSink] = publish_event,
    ):
        """
        Initialize a project session.

        Args:
            project_id: Project ID (persistence key and event channel)
            user_id: User charged for generated video (no charging without one)
            client: Generation service client (created if omitted)
            redis: Redis client for snapshots (created if omitted)
            poller: Poller shared by the coordinators
            video_backend: "interpolation" or "scene" (defaults to settings)
            video_element: Playback element for clips
            audio_element: Playback element for music
            events: Async event sink; None disables events
        """
        self.project_id = project_id
        self.user_id = user_id
        self._owns_client = client is None
        self.client = client or GenerationClient()
        self._owns_redis = redis is None
        self.redis = redis or RedisClient()
        self.poller = poller or Poller()

        self.store = SceneStore(project_id)
        self.persistence = ProjectPersistence(self.redis)
        self.credits = CreditTracker(self.client)

        shared = {
            "persistence": self.persistence,
            "poller": self.poller,
            "events": events,
        }
        self.images = ImagePipeline(self.store, self.client, **shared)
        self.videos = VideoPipeline(
            self.store,
            self.client,
            backend=get_backend(video_backend),
            credits=self.credits,
            user_id=user_id,
            unit_cost=CREDIT_COSTS["video_generation"],
            **shared,
        )
        self.timeline = TimelineEngine(self.store, video=video_element, audio=audio_element)
        self.combiner = CombinePipeline(
            self.store,
            self.client,
            ordered_clips=self.timeline.ordered_clips,
            **shared,
        )
        self._closed = False

    @classmethod
    async def open(cls, project_id: str, **kwargs) -> "ProjectSession":
        """
        Open a session and restore the project's saved snapshot, if any.

        A snapshot that cannot be read is logged and the session starts empty.
        """
        session = cls(project_id, **kwargs)
        try:
            restored = await session.persistence.restore(session.store)
        except RetryableError as e:
            logger.error(
                "Failed to restore project snapshot",
                exc_info=e,
                extra={"project_id": project_id},
            )
            restored = False
        logger.info(
            "Project session opened",
            extra={"project_id": project_id, "restored": restored},
        )
        return session

    @property
    def coordinators(self):
        return (self.images, self.videos, self.combiner)

    def is_busy(self) -> bool:
        return any(self.store.is_generating(kind) for kind in JobKind)

    def estimate_video_credits(self) -> int:
        """Credits a full video run would cost right now."""
        return get_video_cost(
            len(self.videos.backend.select(self.store)),
            self.videos.unit_cost,
        )

    def generation_estimate(self, include_narration: bool = False) -> Dict[str, Any]:
        """
        Estimate credits and wall-clock time for generating the whole project.

        Returns:
            Dict with scene_count, credits, minutes and a display string
        """
        scene_count = len(self.store.scenes)
        minutes = estimate_generation_minutes(scene_count)
        return {
            "scene_count": scene_count,
            "credits": estimate_project_credits(scene_count, include_narration=include_narration),
            "minutes": minutes,
            "display": format_minutes(minutes),
        }

    def errors(self) -> Dict[str, Any]:
        """Latest error per pipeline kind."""
        return {
            kind.value: self.store.last_error(kind)
            for kind in JobKind
            if self.store.last_error(kind) is not None
        }

    async def save(self) -> bool:
        """Save the project snapshot now."""
        return await self.persistence.save(self.store)

    async def close(self) -> None:
        """Cancel local watches, flush pending saves and release clients."""
        if self._closed:
            return
        self._closed = True
        for coordinator in self.coordinators:
            coordinator.cancel()
        await self.persistence.drain()
        if self._owns_client:
            await self.client.close()
        if self._owns_redis:
            await self.redis.close()
        logger.info("Project session closed", extra={"project_id": self.project_id})

    async def __aenter__(self) -> "ProjectSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
