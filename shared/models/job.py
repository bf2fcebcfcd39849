"""
Job models.

Remote job submission/status wire shapes and the local job record a
coordinator mutates while watching a job.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from shared.models.scene import Frame, GenerationSettings, WireModel


class JobKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    COMBINE = "combine"


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Status strings some backends report that are not part of the core vocabulary
_STATUS_ALIASES = {
    "queued": JobStatus.PENDING,
    "waiting": JobStatus.PENDING,
    "processing": JobStatus.RUNNING,
    "in_progress": JobStatus.RUNNING,
    "succeeded": JobStatus.COMPLETED,
    "success": JobStatus.COMPLETED,
    "done": JobStatus.COMPLETED,
    "error": JobStatus.FAILED,
}


class PipelineState(str, Enum):
    """Coordinator lifecycle: idle -> submitting -> polling -> terminal."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_active(self) -> bool:
        return self in (PipelineState.SUBMITTING, PipelineState.POLLING)


class StatusItem(WireModel):
    """One per-scene result item inside a job status response."""

    index: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    prompt: Optional[str] = None
    image_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("imageRef", "image_ref", "imageUrl", "image"),
    )
    image_base64: Optional[str] = None
    url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("url", "videoUrl", "video_url"),
    )
    duration: Optional[float] = None
    success: bool = False
    error: Optional[str] = None
    frames: Optional[List[Frame]] = None
    narration_url: Optional[str] = None
    music_url: Optional[str] = None

    @property
    def resolved_image_ref(self) -> Optional[str]:
        """Image reference, falling back to an inline data URL."""
        if self.image_ref:
            return self.image_ref
        if self.image_base64:
            return f"data:image/png;base64,{self.image_base64}"
        return None


class JobStatusResponse(WireModel):
    """Polled status of a remote job."""

    status: JobStatus = JobStatus.PENDING
    completed: int = 0
    total: int = 0
    current_title: Optional[str] = None
    results: List[StatusItem] = Field(default_factory=list)
    music_url: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_videos_key(cls, data: Any) -> Any:
        # Video backends report their items under "videos"
        if isinstance(data, dict) and not data.get("results") and data.get("videos"):
            data = {**data, "results": data["videos"]}
        return data

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: Any) -> Any:
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered in _STATUS_ALIASES:
                return _STATUS_ALIASES[lowered]
            return lowered
        return v

    @field_validator("results", mode="before")
    @classmethod
    def _none_results(cls, v: Any) -> Any:
        return v or []

    @property
    def ratio(self) -> float:
        """Completion ratio in [0, 1]."""
        if self.total <= 0:
            return 0.0
        return min(1.0, self.completed / self.total)


class JobSubmissionRequest(WireModel):
    """Request body for starting an image or video job."""

    scenes: List[Dict[str, Any]]
    photo_references: Optional[Dict[str, Any]] = None
    settings: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def for_images(
        cls,
        scenes: List[Dict[str, Any]],
        settings: GenerationSettings,
        photo_references: Optional[Dict[str, Any]] = None,
    ) -> "JobSubmissionRequest":
        return cls(
            scenes=scenes,
            photo_references=photo_references,
            settings=settings.to_wire(),
        )


class JobSubmissionResponse(WireModel):
    success: bool = False
    job_id: Optional[str] = None
    error: Optional[str] = None


class Job(WireModel):
    """Local record of one remote job, scoped to one pipeline invocation."""

    id: str
    kind: JobKind
    status: JobStatus = JobStatus.PENDING
    completed_count: int = 0
    total_count: int = 0
    partial_results: List[StatusItem] = Field(default_factory=list)
    # Store indices of the scenes this job was submitted for, in request order
    scene_indices: List[int] = Field(default_factory=list)

    def apply_status(self, status: JobStatusResponse) -> None:
        """Fold a polled status into this record."""
        self.status = status.status if status.status.is_terminal else JobStatus.RUNNING
        self.completed_count = status.completed
        self.total_count = status.total or self.total_count or len(self.scene_indices)
        if status.results:
            self.partial_results = list(status.results)
