"""
Pipelines Module.

Image, video and combine coordinators sharing one submit/poll state machine.
"""

from modules.pipelines.coordinator import PipelineCoordinator, PipelineRun
from modules.pipelines.image_pipeline import ImagePipeline
from modules.pipelines.video_backends import (
    InterpolationBackend,
    ScenePayloadBackend,
    VideoBackend,
    get_backend,
)
from modules.pipelines.video_pipeline import VideoPipeline
from modules.pipelines.combine_pipeline import CombinePipeline, absolute_url

__all__ = [
    "PipelineCoordinator",
    "PipelineRun",
    "ImagePipeline",
    "InterpolationBackend",
    "ScenePayloadBackend",
    "VideoBackend",
    "get_backend",
    "VideoPipeline",
    "CombinePipeline",
    "absolute_url",
]
