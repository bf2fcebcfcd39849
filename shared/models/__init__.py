"""
Data models for the orchestration engine.

This module exports all Pydantic models used across modules.
"""

from .scene import WireModel, Scene, Frame, GeneratedImage, GenerationSettings
from .video import (
    INTRO_CLIP_ID,
    Clip,
    LockedIntroClip,
    AudioTrack,
    CombineVideo,
    CombineRequest,
    CombineResponse,
)
from .job import (
    JobKind,
    JobStatus,
    PipelineState,
    StatusItem,
    JobStatusResponse,
    JobSubmissionRequest,
    JobSubmissionResponse,
    Job,
)

__all__ = [
    # Scene models
    "WireModel",
    "Scene",
    "Frame",
    "GeneratedImage",
    "GenerationSettings",
    # Video models
    "INTRO_CLIP_ID",
    "Clip",
    "LockedIntroClip",
    "AudioTrack",
    "CombineVideo",
    "CombineRequest",
    "CombineResponse",
    # Job models
    "JobKind",
    "JobStatus",
    "PipelineState",
    "StatusItem",
    "JobStatusResponse",
    "JobSubmissionRequest",
    "JobSubmissionResponse",
    "Job",
]
