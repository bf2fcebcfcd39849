"""
Combine pipeline.

Exports the timeline's clips, in timeline order and without the intro, as
one combined video.
"""

from typing import Callable, List, Optional

from modules.pipelines.coordinator import PipelineCoordinator
from shared.config import settings
from shared.errors import CompositionError, PipelineError, ValidationError
from shared.logging import get_logger
from shared.models.job import JobKind, PipelineState
from shared.models.video import Clip, CombineRequest, CombineResponse, CombineVideo
from shared.validation import validate_music_volume, validate_playback_speed

logger = get_logger("pipelines.combine")


def absolute_url(url: str, base_url: str) -> str:
    """Resolve a relative media path against the media base URL."""
    if url.startswith(("http://", "https://", "data:")):
        return url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


class CombinePipeline(PipelineCoordinator):
    """Single-request coordinator: idle -> submitting -> completed | failed."""

    kind = JobKind.COMBINE

    def __init__(
        self,
        store,
        client,
        ordered_clips: Optional[Callable[[], List[Clip]]] = None,
        media_base_url: Optional[str] = None,
        **kwargs,
    ):
        """
        Initialize combine pipeline.

        Args:
            store: Project store
            client: Generation service client
            ordered_clips: Returns clips in timeline order (defaults to store order)
            media_base_url: Base for relative clip URLs
        """
        super().__init__(store, client, **kwargs)
        self.ordered_clips = ordered_clips or self.store.successful_clips
        self.media_base_url = media_base_url or settings.media_base_url

    def build_request(
        self,
        playback_speed: float = 1.0,
        music_volume: Optional[float] = None,
    ) -> CombineRequest:
        """
        Build the combine request from the current timeline order.

        Raises:
            ValidationError: If inputs are out of range or there is nothing to combine
        """
        volume = settings.default_music_volume if music_volume is None else music_volume
        validate_playback_speed(playback_speed)
        validate_music_volume(volume)

        clips = [clip for clip in self.ordered_clips() if not clip.locked and clip.playable]
        if not clips:
            raise ValidationError("No videos to combine")

        return CombineRequest(
            videos=[
                CombineVideo(
                    url=absolute_url(clip.url, self.media_base_url),
                    title=clip.title or f"Scene {clip.index + 1}",
                )
                for clip in clips
            ],
            project_id=self.store.project_id,
            playback_speed=playback_speed,
            music_url=self.store.music_url,
            music_volume=volume,
        )

    async def combine(
        self,
        playback_speed: float = 1.0,
        music_volume: Optional[float] = None,
    ) -> CombineResponse:
        """
        Combine the timeline into one video and record its URL.

        Raises:
            ValidationError: If inputs are invalid
            GenerationInProgressError: If a combine is already running
            CompositionError: If the service fails to combine
        """
        request = self.build_request(playback_speed, music_volume)

        self.store.begin_generation(self.kind)
        run = self._new_run(list(range(len(request.videos))), full=True, holds_flag=True)
        self._latest = run
        self._runs.append(run)
        self.store.clear_error(self.kind)

        try:
            try:
                response = await self.client.combine_videos(request)
            except PipelineError as e:
                self._combine_failed(run, e.message)
                raise CompositionError(e.message, code="COMBINE_FAILED") from e
            except Exception as e:
                self._combine_failed(run, str(e))
                raise CompositionError(
                    f"Failed to combine videos: {str(e)}", code="COMBINE_FAILED"
                ) from e

            if not response.success or not response.combined_video_url:
                message = response.error or "Failed to combine videos"
                self._combine_failed(run, message)
                raise CompositionError(message, code="COMBINE_FAILED")

            self.store.set_combined_url(response.combined_video_url)
            self.persist()
            run.state = PipelineState.COMPLETED
        finally:
            # Released on cancellation too
            self._release(run)
        logger.info(
            f"Combined {len(request.videos)} videos",
            extra={
                "project_id": self.store.project_id,
                "combined_video_url": response.combined_video_url,
            },
        )
        await self._emit("completed", {
            "kind": self.kind.value,
            "combined_video_url": response.combined_video_url,
        })
        return response

    def _combine_failed(self, run, message: str) -> None:
        run.state = PipelineState.FAILED
        self._release(run)
        self.store.set_error(self.kind, message, "COMBINE_FAILED")
        logger.error(
            f"Combine failed: {message}",
            extra={"project_id": self.store.project_id},
        )
