"""
Image pipeline.

Generates per-scene still frames through the async image job endpoint.
Partial results are shown as they arrive; the completed result set is
authoritative. Image generation is not billed.
"""

from typing import Any, Dict, List, Optional

from modules.pipelines.coordinator import PipelineCoordinator, PipelineRun
from modules.poller import PollPolicy
from shared.config import settings
from shared.errors import ValidationError
from shared.logging import get_logger
from shared.models.job import Job, JobKind, JobStatusResponse, JobSubmissionRequest, StatusItem
from shared.models.scene import GeneratedImage, GenerationSettings, Scene
from shared.validation import validate_generation_settings, validate_scene_list

logger = get_logger("pipelines.image")


def _scene_payload(scene: Scene) -> Dict[str, Any]:
    return scene.to_wire()


class ImagePipeline(PipelineCoordinator):
    """Coordinates image generation jobs for one project."""

    kind = JobKind.IMAGE

    def policy(self) -> PollPolicy:
        return PollPolicy(
            interval=settings.image_poll_interval,
            error_interval=settings.image_poll_error_interval,
            max_attempts=settings.image_poll_max_attempts,
        )

    async def generate(
        self,
        generation_settings: GenerationSettings,
        scenes: Optional[List[Scene]] = None,
        photo_references: Optional[Dict[str, Any]] = None,
    ) -> Job:
        """
        Generate images for every scene.

        Args:
            generation_settings: Render settings
            scenes: Optional new storyboard (replaces the store's scenes)
            photo_references: Optional reference photos forwarded to the backend

        Returns:
            The submitted Job

        Raises:
            GenerationInProgressError: If an image generation is already running
            ValidationError: If settings or scenes are invalid
            GenerationError: If the submission fails
        """
        validate_generation_settings(generation_settings)
        validate_scene_list(scenes if scenes is not None else self.store.scenes)

        self.store.begin_generation(self.kind)
        try:
            if scenes is not None:
                self.store.set_scenes(scenes)
            # A full run starts from an empty gallery; results fill it as they arrive
            self.store.replace_images([])

            run = self._new_run(list(range(len(self.store.scenes))), full=True, holds_flag=True)
            request = JobSubmissionRequest.for_images(
                [_scene_payload(scene) for scene in self.store.scenes],
                generation_settings,
                photo_references,
            )
            return await self._launch(
                run, self.client.start_image_job, request, self.client.get_image_job_status
            )
        except Exception:
            self.store.end_generation(self.kind)
            raise

    async def regenerate_scene(
        self,
        index: int,
        generation_settings: GenerationSettings,
        custom_prompt: Optional[str] = None,
    ) -> Job:
        """
        Regenerate the frames of a single scene.

        The custom prompt is recorded on the scene first. On completion only
        that scene's image is replaced; fields the result omits keep their
        previous values.

        Raises:
            GenerationInProgressError: If an image generation is already running
            ValidationError: If the index is unknown
            GenerationError: If the submission fails
        """
        validate_generation_settings(generation_settings)
        if self.store.scene_at(index) is None:
            raise ValidationError(f"No scene at index {index}")

        self.store.begin_generation(self.kind)
        try:
            scene = self.store.scene_at(index)
            if custom_prompt is not None:
                scene = self.store.set_custom_prompt(index, custom_prompt)

            scoped_settings = generation_settings.model_copy(
                update={"custom_prompt": scene.custom_prompt or generation_settings.custom_prompt}
            )
            run = self._new_run([index], full=False, holds_flag=True)
            request = JobSubmissionRequest.for_images([_scene_payload(scene)], scoped_settings)
            return await self._launch(
                run, self.client.start_image_job, request, self.client.get_image_job_status
            )
        except Exception:
            self.store.end_generation(self.kind)
            raise

    def _to_image(self, index: int, item: StatusItem) -> GeneratedImage:
        scene = self.store.scene_at(index)
        frames = list(item.frames or [])
        image_ref = item.resolved_image_ref
        if image_ref is None:
            successful = [f for f in frames if f.success and f.image_ref]
            image_ref = successful[0].image_ref if successful else None

        return GeneratedImage(
            index=index,
            scene_id=scene.id if scene else None,
            title=item.title or (scene.title if scene else None) or f"Scene {index + 1}",
            description=item.description or (scene.description if scene else "") or "",
            image_ref=image_ref,
            prompt=item.prompt,
            custom_prompt=scene.custom_prompt if scene else None,
            location=scene.location if scene else None,
            mood=scene.mood if scene else None,
            narration=scene.narration if scene else None,
            success=item.success,
            error=item.error,
            frames=frames,
        )

    def _collect(self, run: PipelineRun, status: JobStatusResponse) -> List[GeneratedImage]:
        images = []
        for item in status.results:
            index = run.store_index(item)
            if index is None:
                logger.warning(
                    f"Ignoring image result with out-of-range index {item.index}",
                    extra={"project_id": self.store.project_id, "remote_job_id": run.job.id},
                )
                continue
            images.append(self._to_image(index, item))
        return images

    @staticmethod
    def _preserve(existing: Optional[GeneratedImage], fresh: GeneratedImage) -> GeneratedImage:
        if existing is None:
            return fresh
        update = {}
        for name in GeneratedImage.model_fields:
            value = getattr(fresh, name)
            if value is None or value == [] or value == "":
                continue
            update[name] = value
        # success is always authoritative from the fresh result
        update["success"] = fresh.success
        update["error"] = fresh.error
        return existing.model_copy(update=update)

    async def on_progress(self, run: PipelineRun, status: JobStatusResponse) -> None:
        images = self._collect(run, status)
        if not images:
            return
        if run.full:
            self.store.replace_images(images)
        else:
            self.store.merge_images(
                self._preserve(self.store.image_at(image.index), image) for image in images
            )
        self.persist()

    async def on_success(self, run: PipelineRun, status: JobStatusResponse) -> None:
        images = self._collect(run, status)
        if run.full:
            self.store.replace_images(images)
        else:
            for image in images:
                self.store.replace_image(self._preserve(self.store.image_at(image.index), image))
        self.persist()
        logger.info(
            f"Image generation complete: {sum(1 for i in images if i.success)}/{len(images)} succeeded",
            extra={"project_id": self.store.project_id, "remote_job_id": run.job.id},
        )
