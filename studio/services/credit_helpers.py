"""
Credit helper functions.

Credit prices and generation estimates.
"""

import math
from typing import Dict

# Credits per unit of output
CREDIT_COSTS: Dict[str, int] = {
    "video_generation": 5,  # per scene
    "image_generation": 0,
    "narration": 10,
    "voice_clone": 50,
}


def get_video_cost(scene_count: int, unit_cost: int = CREDIT_COSTS["video_generation"]) -> int:
    """
    Get the credit cost of animating scenes.

    Examples:
        >>> get_video_cost(3)
        15
        >>> get_video_cost(0)
        0
    """
    return max(0, scene_count) * unit_cost


def estimate_project_credits(
    scene_count: int,
    include_narration: bool = False,
    clone_voice: bool = False,
) -> int:
    """
    Estimate the credits a full project run will use.

    Images are free; each animated scene costs video credits, narration and
    voice cloning are flat charges.

    Examples:
        >>> estimate_project_credits(4)
        20
        >>> estimate_project_credits(4, include_narration=True, clone_voice=True)
        80
    """
    total = scene_count * CREDIT_COSTS["image_generation"] + get_video_cost(scene_count)
    if include_narration:
        total += CREDIT_COSTS["narration"]
    if clone_voice:
        total += CREDIT_COSTS["voice_clone"]
    return total


def estimate_generation_minutes(scene_count: int) -> int:
    """
    Estimate wall-clock minutes for images, video and narration.

    Roughly 30 seconds per scene for images, 5 minutes per scene for video
    and 2 minutes for narration and music.

    Examples:
        >>> estimate_generation_minutes(3)
        19
    """
    images = math.ceil(scene_count * 0.5)
    videos = math.ceil(scene_count * 5)
    narration = 2
    return images + videos + narration


def format_minutes(minutes: int) -> str:
    """
    Format a duration in minutes for display.

    Examples:
        >>> format_minutes(1)
        '1 min'
        >>> format_minutes(45)
        '45 mins'
        >>> format_minutes(125)
        '2h 5m'
    """
    if minutes < 60:
        return f"{minutes} min{'s' if minutes != 1 else ''}"
    return f"{minutes // 60}h {minutes % 60}m"
