"""
Pytest configuration and fixtures for timeline tests.
"""

import pytest

from modules.scene_store import SceneStore
from modules.timeline import TimelineEngine
from shared.models import Clip, LockedIntroClip


class FakeMediaElement:
    """In-memory media element recording every command it receives."""

    def __init__(self):
        self.src = None
        self.volume = 1.0
        self.rate = 1.0
        self.calls = []
        self._time = 0.0
        self._paused = True

    @property
    def current_time(self):
        return self._time

    @property
    def paused(self):
        return self._paused

    def load(self, url):
        self.calls.append(("load", url))
        self.src = url
        self._time = 0.0
        self._paused = True

    def play(self):
        self.calls.append(("play",))
        self._paused = False

    def pause(self):
        self.calls.append(("pause",))
        self._paused = True

    def seek(self, seconds):
        self.calls.append(("seek", seconds))
        self._time = seconds

    def set_playback_rate(self, rate):
        self.calls.append(("rate", rate))
        self.rate = rate

    def set_volume(self, volume):
        self.calls.append(("volume", volume))
        self.volume = volume

    def seeks(self):
        return [call[1] for call in self.calls if call[0] == "seek"]


@pytest.fixture
def video():
    return FakeMediaElement()


@pytest.fixture
def audio():
    return FakeMediaElement()


@pytest.fixture
def store():
    """Two 5-second clips (durations unknown, so the default applies)."""
    store = SceneStore("project-1")
    store.replace_clips([
        Clip(id="a", index=0, title="First Meeting", success=True, url="/videos/a.mp4"),
        Clip(id="b", index=1, title="Road Trip", success=True, url="/videos/b.mp4"),
    ])
    store.set_music_url("/audio/score.mp3")
    return store


@pytest.fixture
def engine(store, video, audio):
    return TimelineEngine(
        store,
        video=video,
        audio=audio,
        intro=LockedIntroClip(url="/video/intro_special.mov", duration=6.0),
        default_duration=5.0,
        resync_threshold=0.5,
    )
