"""
Timeline Module.

Multi-clip global time mapping with a locked intro and synchronized music.
"""

from modules.timeline.engine import TimelineEngine
from modules.timeline.playback import MediaElement

__all__ = [
    "TimelineEngine",
    "MediaElement",
]
