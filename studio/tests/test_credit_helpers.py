"""
Tests for credit helper functions.
"""

import pytest
from studio.services.credit_helpers import (
    CREDIT_COSTS,
    estimate_generation_minutes,
    estimate_project_credits,
    format_minutes,
    get_video_cost,
)


def test_credit_costs():
    """Test price table."""
    assert CREDIT_COSTS["video_generation"] == 5
    assert CREDIT_COSTS["image_generation"] == 0
    assert CREDIT_COSTS["narration"] == 10
    assert CREDIT_COSTS["voice_clone"] == 50


@pytest.mark.parametrize("scenes,expected", [(0, 0), (1, 5), (6, 30), (-2, 0)])
def test_get_video_cost(scenes, expected):
    """Test per-scene video cost."""
    assert get_video_cost(scenes) == expected


def test_get_video_cost_custom_unit():
    assert get_video_cost(3, unit_cost=7) == 21


def test_estimate_project_credits():
    """Test full project estimate."""
    assert estimate_project_credits(4) == 20
    assert estimate_project_credits(4, include_narration=True) == 30
    assert estimate_project_credits(4, include_narration=True, clone_voice=True) == 80


def test_estimate_generation_minutes():
    """Test time estimate."""
    assert estimate_generation_minutes(1) == 8
    assert estimate_generation_minutes(3) == 19


def test_format_minutes():
    """Test display formatting."""
    assert format_minutes(1) == "1 min"
    assert format_minutes(45) == "45 mins"
    assert format_minutes(60) == "1h 0m"
    assert format_minutes(125) == "2h 5m"
