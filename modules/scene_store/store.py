"""
Scene/Clip store.

Single owned source of truth for one project's scenes, generated images,
video clips and export URLs, plus per-pipeline generating flags and errors.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from shared.errors import GenerationInProgressError, ValidationError
from shared.logging import get_logger
from shared.models.job import JobKind
from shared.models.scene import GeneratedImage, Scene
from shared.models.video import Clip

logger = get_logger("scene_store")


@dataclass
class ErrorRecord:
    """Latest error reported by one pipeline."""

    message: str
    code: Optional[str] = None


class SceneStore:
    """Mutable project state shared by the coordinators and the timeline."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        self.scenes: List[Scene] = []
        self.images: List[GeneratedImage] = []
        self.clips: List[Clip] = []
        self.combined_video_url: Optional[str] = None
        self.music_url: Optional[str] = None
        # Bumped on every clip-list change so the timeline can reconcile order
        self.version = 0
        self._generating: Set[JobKind] = set()
        self._errors: Dict[JobKind, ErrorRecord] = {}

    # Scenes

    def set_scenes(self, scenes: Iterable[Scene]) -> None:
        """Replace the storyboard, reassigning dense zero-based indices."""
        self.scenes = [scene.model_copy(update={"index": i}) for i, scene in enumerate(scenes)]

    def scene_at(self, index: int) -> Optional[Scene]:
        if 0 <= index < len(self.scenes):
            return self.scenes[index]
        return None

    def set_custom_prompt(self, index: int, prompt: Optional[str]) -> Scene:
        scene = self.scene_at(index)
        if scene is None:
            raise ValidationError(f"No scene at index {index}")
        updated = scene.model_copy(update={"custom_prompt": prompt})
        self.scenes[index] = updated
        return updated

    # Images

    def image_at(self, index: int) -> Optional[GeneratedImage]:
        for image in self.images:
            if image.index == index:
                return image
        return None

    def merge_images(self, images: Iterable[GeneratedImage]) -> None:
        """Upsert images by scene index."""
        by_index = {image.index: image for image in self.images}
        for image in images:
            by_index[image.index] = image
        self.images = [by_index[i] for i in sorted(by_index)]

    def replace_images(self, images: Iterable[GeneratedImage]) -> None:
        self.images = sorted(images, key=lambda image: image.index)

    def replace_image(self, image: GeneratedImage) -> None:
        self.merge_images([image])

    def video_eligible_images(self) -> List[GeneratedImage]:
        """Images with at least two successful frames, in scene order."""
        return [image for image in self.images if image.is_video_eligible]

    # Clips

    def clip_at(self, index: int) -> Optional[Clip]:
        for clip in self.clips:
            if clip.index == index:
                return clip
        return None

    def merge_clips(self, clips: Iterable[Clip]) -> None:
        """Upsert clips by scene index."""
        by_index = {clip.index: clip for clip in self.clips}
        for clip in clips:
            by_index[clip.index] = clip
        self.clips = [by_index[i] for i in sorted(by_index)]
        self.version += 1

    def replace_clips(self, clips: Iterable[Clip]) -> None:
        self.clips = sorted(clips, key=lambda clip: clip.index)
        self.version += 1

    def update_clip_duration(self, clip_id: str, duration: float) -> bool:
        """Record a measured duration for a clip. Returns False if unknown."""
        for position, clip in enumerate(self.clips):
            if clip.id == clip_id:
                if clip.duration != duration:
                    self.clips[position] = clip.model_copy(update={"duration": duration})
                return True
        return False

    def successful_clips(self) -> List[Clip]:
        return [clip for clip in self.clips if clip.playable]

    def failed_clip_indices(self) -> List[int]:
        return [clip.index for clip in self.clips if not clip.success]

    # Export and audio

    def set_music_url(self, url: Optional[str]) -> None:
        self.music_url = url

    def set_combined_url(self, url: Optional[str]) -> None:
        self.combined_video_url = url

    # Generating flags

    def begin_generation(self, kind: JobKind) -> None:
        """
        Mark a pipeline as generating.

        Raises:
            GenerationInProgressError: If the kind is already generating
        """
        if kind in self._generating:
            raise GenerationInProgressError(
                f"{kind.value.capitalize()} generation is already in progress",
                code="GENERATION_IN_PROGRESS",
            )
        self._generating.add(kind)

    def end_generation(self, kind: JobKind) -> None:
        self._generating.discard(kind)

    def is_generating(self, kind: JobKind) -> bool:
        return kind in self._generating

    # Errors

    def set_error(self, kind: JobKind, message: str, code: Optional[str] = None) -> None:
        self._errors[kind] = ErrorRecord(message=message, code=code)

    def clear_error(self, kind: JobKind) -> None:
        self._errors.pop(kind, None)

    def last_error(self, kind: JobKind) -> Optional[ErrorRecord]:
        return self._errors.get(kind)

    # Snapshots

    def to_snapshot(self) -> Dict[str, Any]:
        """Serializable project record (camelCase keys)."""
        return {
            "projectId": self.project_id,
            "scenes": [scene.to_wire() for scene in self.scenes],
            "images": [image.to_wire() for image in self.images],
            "videos": [clip.to_wire() for clip in self.clips],
            "combinedVideoUrl": self.combined_video_url,
            "musicUrl": self.music_url,
        }

    def load_snapshot(self, snapshot: Dict[str, Any]) -> None:
        """Restore state from a project record."""
        self.scenes = [Scene.model_validate(s) for s in snapshot.get("scenes") or []]
        self.replace_images(GeneratedImage.model_validate(i) for i in snapshot.get("images") or [])
        self.replace_clips(Clip.model_validate(c) for c in snapshot.get("videos") or [])
        self.combined_video_url = snapshot.get("combinedVideoUrl")
        self.music_url = snapshot.get("musicUrl")
        logger.info(
            f"Loaded snapshot for project {self.project_id}",
            extra={
                "project_id": self.project_id,
                "scenes": len(self.scenes),
                "clips": len(self.clips),
            },
        )
