"""
Clip, timeline and export models.
"""

from typing import List, Optional

from pydantic import Field

from shared.models.scene import WireModel

INTRO_CLIP_ID = "intro_locked_0"


class Clip(WireModel):
    """One generated video segment for a scene."""

    id: str
    index: int = Field(ge=0)
    title: str
    url: Optional[str] = None
    duration: Optional[float] = Field(default=None, gt=0)
    success: bool = False
    error: Optional[str] = None
    locked: bool = False
    narration_url: Optional[str] = None
    music_url: Optional[str] = None

    @property
    def playable(self) -> bool:
        return self.success and bool(self.url)


class LockedIntroClip(Clip):
    """Fixed intro segment pinned to timeline position 0."""

    id: str = INTRO_CLIP_ID
    index: int = 0
    title: str = "Intro"
    duration: float = Field(default=6.0, gt=0)
    success: bool = True
    locked: bool = True


class AudioTrack(WireModel):
    """Background music laid under the timeline, starting after the intro."""

    url: str
    offset_seconds: float = Field(default=0.0, ge=0)
    volume: float = Field(default=0.5, ge=0, le=1)


class CombineVideo(WireModel):
    url: str
    title: str


class CombineRequest(WireModel):
    """Request body for combining the ordered clips into one export."""

    videos: List[CombineVideo]
    project_id: str
    playback_speed: float = 1.0
    music_url: Optional[str] = None
    music_volume: float = 0.5


class CombineResponse(WireModel):
    success: bool = False
    combined_video_url: Optional[str] = None
    error: Optional[str] = None
