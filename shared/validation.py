"""
Validation utilities.

Shared validation utilities for generation and export inputs.
"""

from typing import Any, Sequence

from shared.errors import ValidationError
from shared.models.scene import GenerationSettings


def validate_generation_settings(generation_settings: GenerationSettings) -> None:
    """
    Validate render settings before submission.

    Args:
        generation_settings: Settings to validate

    Raises:
        ValidationError: If settings are invalid
    """
    if generation_settings is None:
        raise ValidationError("Generation settings are required")

    if generation_settings.width % 8 or generation_settings.height % 8:
        raise ValidationError(
            f"Width and height must be multiples of 8 "
            f"(got {generation_settings.width}x{generation_settings.height})"
        )

    if generation_settings.steps > 150:
        raise ValidationError(
            f"Steps must be at most 150 (current: {generation_settings.steps})"
        )


def validate_playback_speed(speed: float) -> None:
    """
    Validate an export playback speed.

    Raises:
        ValidationError: If speed is outside (0, 4]
    """
    if not isinstance(speed, (int, float)) or isinstance(speed, bool):
        raise ValidationError("Playback speed must be a number")

    if speed <= 0 or speed > 4:
        raise ValidationError(f"Playback speed must be in (0, 4] (current: {speed})")


def validate_music_volume(volume: float) -> None:
    """
    Validate a music volume.

    Raises:
        ValidationError: If volume is outside [0, 1]
    """
    if not isinstance(volume, (int, float)) or isinstance(volume, bool):
        raise ValidationError("Music volume must be a number")

    if volume < 0 or volume > 1:
        raise ValidationError(f"Music volume must be in [0, 1] (current: {volume})")


def validate_scene_list(scenes: Sequence[Any]) -> None:
    """
    Validate a list of scenes for submission.

    Raises:
        ValidationError: If the list is empty or titles are missing
    """
    if not scenes:
        raise ValidationError("At least one scene is required")

    for position, scene in enumerate(scenes):
        title = getattr(scene, "title", None)
        if title is None and isinstance(scene, dict):
            title = scene.get("title")
        if not title or not str(title).strip():
            raise ValidationError(f"Scene {position + 1} is missing a title")
