"""
Video generation backends.

Two interchangeable ways of turning generated images into clips: first/last
frame interpolation, or a full scene payload that may also carry narration
and music.
"""

from typing import Any, Dict, List, Optional

from modules.poller import PollPolicy
from modules.scene_store import SceneStore
from shared.config import settings
from shared.errors import ValidationError
from shared.generation_client import GenerationClient
from shared.models.job import JobStatusResponse, JobSubmissionRequest, JobSubmissionResponse
from shared.models.scene import GeneratedImage


class VideoBackend:
    """Request shape, endpoints and poll cadence of one video backend."""

    name = "base"

    def policy(self) -> PollPolicy:
        raise NotImplementedError

    def select(self, store: SceneStore) -> List[GeneratedImage]:
        """Images this backend can animate, in scene order."""
        raise NotImplementedError

    def scene_payload(self, image: GeneratedImage, store: SceneStore) -> Dict[str, Any]:
        raise NotImplementedError

    def global_settings(self, options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return dict(options or {})

    def build_request(
        self,
        images: List[GeneratedImage],
        store: SceneStore,
        options: Optional[Dict[str, Any]] = None,
    ) -> JobSubmissionRequest:
        return JobSubmissionRequest(
            scenes=[self.scene_payload(image, store) for image in images],
            settings=self.global_settings(options),
        )

    async def submit(
        self, client: GenerationClient, request: JobSubmissionRequest
    ) -> JobSubmissionResponse:
        raise NotImplementedError

    async def fetch_status(self, client: GenerationClient, job_id: str) -> JobStatusResponse:
        raise NotImplementedError


class InterpolationBackend(VideoBackend):
    """Animates between the first and last successful frame of each scene."""

    name = "interpolation"
    default_music_volume = 0.3

    def policy(self) -> PollPolicy:
        return PollPolicy(
            interval=settings.interpolation_poll_interval,
            error_interval=settings.interpolation_poll_error_interval,
            max_attempts=settings.interpolation_poll_max_attempts,
        )

    def select(self, store: SceneStore) -> List[GeneratedImage]:
        return store.video_eligible_images()

    def scene_payload(self, image: GeneratedImage, store: SceneStore) -> Dict[str, Any]:
        return {
            "title": image.title,
            "description": image.description or image.prompt or image.title,
            "frames": [frame.to_wire() for frame in image.interpolation_endpoints()],
        }

    def global_settings(self, options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = {
            "duration": settings.scene_duration_seconds,
            "aspectRatio": settings.aspect_ratio,
            "addMusic": True,
            "musicVolume": self.default_music_volume,
        }
        merged.update(options or {})
        return merged

    async def submit(self, client, request):
        return await client.start_interpolation_video_job(request)

    async def fetch_status(self, client, job_id):
        return await client.get_interpolation_job_status(job_id)


class ScenePayloadBackend(VideoBackend):
    """Sends the whole scene, reusing narration and music already generated for it."""

    name = "scene"

    def policy(self) -> PollPolicy:
        return PollPolicy(
            interval=settings.scene_video_poll_interval,
            error_interval=settings.scene_video_poll_error_interval,
            max_attempts=settings.scene_video_poll_max_attempts,
        )

    def select(self, store: SceneStore) -> List[GeneratedImage]:
        return [
            image for image in store.images
            if image.success and (image.image_ref or image.successful_frames)
        ]

    def scene_payload(self, image: GeneratedImage, store: SceneStore) -> Dict[str, Any]:
        payload = {
            "index": image.index,
            "title": image.title,
            "description": image.description,
            "narration": image.narration,
            "location": image.location,
            "mood": image.mood,
            "imageUrl": image.image_ref,
            "frames": [frame.to_wire() for frame in image.successful_frames],
        }
        previous = store.clip_at(image.index)
        if previous is not None:
            payload["narrationUrl"] = previous.narration_url
            payload["musicUrl"] = previous.music_url
        return {k: v for k, v in payload.items() if v is not None}

    async def submit(self, client, request):
        return await client.start_scene_video_job(request)

    async def fetch_status(self, client, job_id):
        return await client.get_scene_video_job_status(job_id)


BACKENDS = {
    InterpolationBackend.name: InterpolationBackend,
    ScenePayloadBackend.name: ScenePayloadBackend,
}


def get_backend(name: Optional[str] = None) -> VideoBackend:
    """Instantiate a backend by name (defaults to settings.video_backend)."""
    key = name or settings.video_backend
    if key not in BACKENDS:
        raise ValidationError(f"Unknown video backend: {key}")
    return BACKENDS[key]()
