"""
Playback surface contract.

The timeline engine is the only component that commands media elements.
Hosts (a browser bridge, a desktop player, a test fake) implement this.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MediaElement(Protocol):
    """A single video or audio element."""

    @property
    def current_time(self) -> float:
        ...

    @property
    def paused(self) -> bool:
        ...

    def load(self, url: str) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def seek(self, seconds: float) -> None:
        ...

    def set_playback_rate(self, rate: float) -> None:
        ...

    def set_volume(self, volume: float) -> None:
        ...
