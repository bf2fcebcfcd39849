"""
Video pipeline.

Turns generated images into clips through one of the video backends, then
charges the user for each successfully generated clip.
"""

from typing import Any, Dict, List, Optional, Set

from modules.pipelines.coordinator import PipelineCoordinator, PipelineRun
from modules.pipelines.video_backends import VideoBackend, get_backend
from modules.poller import PollPolicy
from shared.config import settings
from shared.credit_tracking import CreditTracker
from shared.errors import GenerationInProgressError, ValidationError
from shared.logging import get_logger
from shared.models.job import Job, JobKind, JobStatusResponse, StatusItem
from shared.models.scene import GeneratedImage
from shared.models.video import Clip

logger = get_logger("pipelines.video")


class VideoPipeline(PipelineCoordinator):
    """Coordinates video generation jobs for one project."""

    kind = JobKind.VIDEO

    def __init__(
        self,
        store,
        client,
        backend: Optional[VideoBackend] = None,
        credits: Optional[CreditTracker] = None,
        user_id: Optional[str] = None,
        unit_cost: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(store, client, **kwargs)
        self.backend = backend or get_backend()
        self.credits = credits
        self.user_id = user_id
        self.unit_cost = unit_cost if unit_cost is not None else settings.video_unit_cost
        self.last_charge = 0

    def policy(self) -> PollPolicy:
        return self.backend.policy()

    def _check_ready(self) -> None:
        if self.store.is_generating(JobKind.IMAGE):
            raise ValidationError("Wait for image generation to finish before generating videos")
        if not self.store.images:
            raise ValidationError("Please generate images first")

    async def _reserve(self, images: List[GeneratedImage]) -> None:
        if self.credits is None or self.user_id is None:
            return
        await self.credits.ensure_sufficient(self.user_id, len(images) * self.unit_cost)

    def _in_flight_indices(self) -> Set[int]:
        """Store indices submitted by runs that have not finished."""
        return {index for run in self._runs for index in run.scene_indices}

    async def _start(
        self,
        images: List[GeneratedImage],
        full: bool,
        options: Optional[Dict[str, Any]],
    ) -> Job:
        run = self._new_run([image.index for image in images], full=full, holds_flag=full)
        # Claim the indices before the first await so overlapping calls see them
        self._runs.append(run)
        try:
            await self._reserve(images)
            request = self.backend.build_request(images, self.store, options)
        except Exception:
            self._release(run)
            raise

        async def submit(req):
            return await self.backend.submit(self.client, req)

        async def fetch_status(job_id):
            return await self.backend.fetch_status(self.client, job_id)

        return await self._launch(run, submit, request, fetch_status)

    async def generate(self, options: Optional[Dict[str, Any]] = None) -> Job:
        """
        Generate clips for every scene the backend can animate.

        Args:
            options: Backend settings merged over its defaults

        Returns:
            The submitted Job

        Raises:
            ValidationError: If images are missing or still generating
            GenerationInProgressError: If a video generation is already running
            InsufficientCreditsError: If the user cannot afford the estimate
            GenerationError: If the submission fails
        """
        self._check_ready()
        images = self.backend.select(self.store)
        if not images:
            raise ValidationError(
                "No scenes are ready for video generation. Please regenerate images."
            )

        self.store.begin_generation(self.kind)
        return await self._start(images, full=True, options=options)

    async def regenerate_failed(self, options: Optional[Dict[str, Any]] = None) -> Job:
        """
        Resubmit only the scenes whose clips failed.

        Allowed while another video run is in flight. Successful clips are
        never re-requested or re-billed.

        Raises:
            ValidationError: If no clip has failed or images are not ready
            GenerationInProgressError: If every failed clip is already resubmitted
            InsufficientCreditsError: If the user cannot afford the estimate
            GenerationError: If the submission fails
        """
        failed = set(self.store.failed_clip_indices())
        if not failed:
            raise ValidationError("No failed videos to regenerate")
        self._check_ready()

        pending = failed - self._in_flight_indices()
        if not pending:
            raise GenerationInProgressError(
                "The failed videos are already being regenerated",
                code="GENERATION_IN_PROGRESS",
            )

        images = [image for image in self.backend.select(self.store) if image.index in pending]
        if not images:
            raise ValidationError("Failed scenes have no usable images to regenerate from")

        logger.info(
            f"Regenerating {len(images)} failed clip(s)",
            extra={"project_id": self.store.project_id, "indices": sorted(pending)},
        )
        return await self._start(images, full=False, options=options)

    def _to_clip(self, index: int, item: StatusItem) -> Clip:
        image = self.store.image_at(index)
        scene = self.store.scene_at(index)
        previous = self.store.clip_at(index)
        clip_id = (
            (scene.id if scene else None)
            or (image.scene_id if image else None)
            or (previous.id if previous else None)
            or f"scene_{index}"
        )
        return Clip(
            id=clip_id,
            index=index,
            title=item.title or (image.title if image else None) or f"Scene {index + 1}",
            url=item.url,
            duration=item.duration if item.duration and item.duration > 0 else None,
            success=item.success,
            error=item.error,
            narration_url=item.narration_url or (previous.narration_url if previous else None),
            music_url=item.music_url or (previous.music_url if previous else None),
        )

    async def on_progress(self, run: PipelineRun, status: JobStatusResponse) -> None:
        logger.debug(
            f"Video progress {status.completed}/{status.total}",
            extra={
                "project_id": self.store.project_id,
                "remote_job_id": run.job.id,
                "current_title": status.current_title,
            },
        )

    async def on_success(self, run: PipelineRun, status: JobStatusResponse) -> None:
        clips = []
        for item in status.results:
            index = run.store_index(item)
            if index is None:
                logger.warning(
                    f"Ignoring video result with out-of-range index {item.index}",
                    extra={"project_id": self.store.project_id, "remote_job_id": run.job.id},
                )
                continue
            clips.append(self._to_clip(index, item))

        if run.full:
            self.store.replace_clips(clips)
        else:
            self.store.merge_clips(clips)

        if status.music_url:
            self.store.set_music_url(status.music_url)

        self.persist()

        successful = sum(1 for clip in clips if clip.success)
        logger.info(
            f"Video generation complete: {successful}/{len(clips)} succeeded",
            extra={"project_id": self.store.project_id, "remote_job_id": run.job.id},
        )
        await self._charge(run, successful)

    async def _charge(self, run: PipelineRun, successful: int) -> int:
        """Charge for successful clips. Failures are logged, never raised."""
        amount = successful * self.unit_cost
        self.last_charge = 0
        if amount <= 0 or self.credits is None or self.user_id is None:
            return 0
        try:
            await self.credits.charge(
                self.user_id,
                amount,
                f"Video generation ({successful} scene{'s' if successful != 1 else ''})",
                job_id=run.job.id,
            )
        except Exception as e:
            logger.error(
                f"Failed to charge {amount} credits for job {run.job.id}: {str(e)}",
                extra={
                    "project_id": self.store.project_id,
                    "remote_job_id": run.job.id,
                    "amount": amount,
                },
                exc_info=True,
            )
            return 0
        self.last_charge = amount
        return amount
