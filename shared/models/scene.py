"""
Scene and image models.

Storyboard scenes, per-scene frames and the generated image derived from them.
"""

from typing import List, Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged with the generation service (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Scene(WireModel):
    """One narrative beat produced by the storyboard generator."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    index: int = Field(default=0, ge=0)
    title: str
    description: str = ""
    location: Optional[str] = None
    mood: Optional[str] = None
    narration: Optional[str] = None
    custom_prompt: Optional[str] = None


class Frame(WireModel):
    """One generated still image supporting a scene."""

    success: bool = False
    image_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("imageRef", "image_ref", "imageUrl", "url"),
    )
    error: Optional[str] = None


class GeneratedImage(WireModel):
    """Per-scene image result, derived from its frames."""

    index: int = Field(ge=0)
    scene_id: Optional[str] = None
    title: str
    description: str = ""
    image_ref: Optional[str] = None
    prompt: Optional[str] = None
    custom_prompt: Optional[str] = None
    location: Optional[str] = None
    mood: Optional[str] = None
    narration: Optional[str] = None
    success: bool = True
    error: Optional[str] = None
    frames: List[Frame] = Field(default_factory=list)

    @field_validator("frames", mode="before")
    @classmethod
    def _none_frames(cls, v):
        return v or []

    @property
    def successful_frames(self) -> List[Frame]:
        return [f for f in self.frames if f.success]

    @property
    def is_video_eligible(self) -> bool:
        """A scene can be animated only with two interpolation endpoints."""
        return len(self.successful_frames) >= 2

    def interpolation_endpoints(self) -> List[Frame]:
        """First and last successful frames; empty if not video-eligible."""
        frames = self.successful_frames
        if len(frames) < 2:
            return []
        return [frames[0], frames[-1]]


class GenerationSettings(WireModel):
    """Render settings sent with an image or video submission."""

    width: int = Field(default=1024, gt=0)
    height: int = Field(default=576, gt=0)
    cfg_scale: float = Field(default=7.0, gt=0)
    steps: int = Field(default=30, gt=0)
    sampler: str = "DPM++ 2M Karras"
    negative_prompt: str = ""
    custom_prompt: Optional[str] = None
