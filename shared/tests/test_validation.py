"""
Tests for validation utilities.
"""

import pytest
from shared.validation import (
    validate_generation_settings,
    validate_playback_speed,
    validate_music_volume,
    validate_scene_list
)
from shared.errors import ValidationError
from shared.models import GenerationSettings, Scene


def test_validate_generation_settings_valid():
    """Test validation of default settings."""
    # Should not raise
    validate_generation_settings(GenerationSettings())
    validate_generation_settings(GenerationSettings(width=512, height=512, steps=150))


def test_validate_generation_settings_dimensions():
    """Test validation fails for dimensions that are not multiples of 8."""
    with pytest.raises(ValidationError) as exc_info:
        validate_generation_settings(GenerationSettings(width=1001))

    assert "multiples of 8" in str(exc_info.value)


def test_validate_generation_settings_steps():
    """Test validation fails for too many steps."""
    with pytest.raises(ValidationError) as exc_info:
        validate_generation_settings(GenerationSettings(steps=151))

    assert "151" in str(exc_info.value)


def test_validate_generation_settings_missing():
    with pytest.raises(ValidationError):
        validate_generation_settings(None)


@pytest.mark.parametrize("speed", [0.25, 1, 1.5, 4])
def test_validate_playback_speed_valid(speed):
    validate_playback_speed(speed)


@pytest.mark.parametrize("speed", [0, -1, 4.01, "fast", True])
def test_validate_playback_speed_invalid(speed):
    """Test validation fails outside (0, 4] or for non-numbers."""
    with pytest.raises(ValidationError):
        validate_playback_speed(speed)


@pytest.mark.parametrize("volume", [0, 0.3, 1])
def test_validate_music_volume_valid(volume):
    validate_music_volume(volume)


@pytest.mark.parametrize("volume", [-0.1, 1.1, None])
def test_validate_music_volume_invalid(volume):
    with pytest.raises(ValidationError):
        validate_music_volume(volume)


def test_validate_scene_list_valid():
    """Test validation of models and raw dicts."""
    validate_scene_list([Scene(title="First Meeting"), {"title": "Road Trip"}])


def test_validate_scene_list_empty():
    """Test validation fails for an empty list."""
    with pytest.raises(ValidationError) as exc_info:
        validate_scene_list([])

    assert "at least one scene" in str(exc_info.value).lower()


def test_validate_scene_list_missing_title():
    """Test validation reports the position of the untitled scene."""
    with pytest.raises(ValidationError) as exc_info:
        validate_scene_list([{"title": "Fine"}, {"title": "   "}])

    assert "Scene 2" in str(exc_info.value)
