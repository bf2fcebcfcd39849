"""
Timeline engine.

Maps a global playback position onto [locked intro, clip, clip, ...] and
keeps the background music aligned with it. The clip list is recomputed from
the store on every query; only the user's ordering (a list of clip ids) is
held here.
"""

from typing import Dict, List, Optional, Tuple

from modules.scene_store import SceneStore
from modules.timeline.playback import MediaElement
from shared.config import settings
from shared.errors import ValidationError
from shared.logging import get_logger
from shared.models.video import AudioTrack, Clip, LockedIntroClip
from shared.validation import validate_music_volume, validate_playback_speed

logger = get_logger("timeline")


class TimelineEngine:
    """Global-time mapping, clip order and audio sync for one project."""

    def __init__(
        self,
        store: SceneStore,
        video: Optional[MediaElement] = None,
        audio: Optional[MediaElement] = None,
        intro: Optional[LockedIntroClip] = None,
        default_duration: Optional[float] = None,
        resync_threshold: Optional[float] = None,
    ):
        self.store = store
        self.video = video
        self.audio = audio
        self.intro = intro or LockedIntroClip(
            url=settings.intro_clip_url,
            title=settings.intro_clip_title,
            duration=settings.intro_clip_duration,
        )
        self.default_duration = default_duration or settings.default_clip_duration
        self.resync_threshold = (
            settings.audio_resync_threshold if resync_threshold is None else resync_threshold
        )

        self.current_index = 0
        self.local_time = 0.0
        self.is_playing = False
        self.playback_rate = 1.0
        self.music_volume = settings.default_music_volume

        # User ordering of non-locked clip ids; None means store order
        self._order: Optional[List[str]] = None
        self._loaded_clip_id: Optional[str] = None
        self._audio_url: Optional[str] = None

    # Clip list

    def clips(self) -> List[Clip]:
        """Current timeline: the locked intro followed by playable clips in user order."""
        available = self.store.successful_clips()
        if self._order is None:
            ordered = available
        else:
            by_id = {clip.id: clip for clip in available}
            ordered = [by_id[clip_id] for clip_id in self._order if clip_id in by_id]
            known = set(self._order)
            # Clips that appeared after the last reorder go to the end
            ordered += [clip for clip in available if clip.id not in known]
        return [self.intro] + ordered

    def ordered_clips(self) -> List[Clip]:
        return self.clips()

    def duration_of(self, clip: Clip) -> float:
        return clip.duration if clip.duration else self.default_duration

    def durations(self) -> List[float]:
        return [self.duration_of(clip) for clip in self.clips()]

    @property
    def total_duration(self) -> float:
        return sum(self.durations())

    @property
    def current_clip(self) -> Clip:
        clips = self.clips()
        return clips[min(self.current_index, len(clips) - 1)]

    @property
    def position(self) -> float:
        """Current global time."""
        return self.global_time(min(self.current_index, len(self.clips()) - 1), self.local_time)

    @property
    def audio_track(self) -> Optional[AudioTrack]:
        if not self.store.music_url:
            return None
        return AudioTrack(
            url=self.store.music_url,
            offset_seconds=self.duration_of(self.intro),
            volume=self.music_volume,
        )

    # Mapping

    def global_time(self, clip_index: int, local_time: float) -> float:
        """
        Convert a clip-local time to global time.

        Raises:
            ValidationError: If clip_index is out of range
        """
        durations = self.durations()
        if not 0 <= clip_index < len(durations):
            raise ValidationError(f"Clip index {clip_index} out of range (0-{len(durations) - 1})")
        return sum(durations[:clip_index]) + local_time

    def locate(self, global_time: float) -> Tuple[int, float]:
        """
        Convert a global time to (clip index, local time).

        Negative times clamp to the start and times past the end clamp to the
        end of the last clip. A time exactly on a boundary belongs to the
        following clip.
        """
        durations = self.durations()
        if global_time <= 0:
            return 0, 0.0

        start = 0.0
        for index, duration in enumerate(durations):
            if global_time < start + duration:
                return index, global_time - start
            start += duration
        return len(durations) - 1, durations[-1]

    # Navigation

    def seek(self, global_time: float) -> Tuple[int, float]:
        """Move playback to a global time. Returns the resolved (index, local time)."""
        index, local = self.locate(global_time)
        self._activate(index)
        self.local_time = local
        if self.video is not None:
            self.video.seek(local)
        self._sync_audio(self.global_time(index, local))
        return index, local

    def seek_local(self, local_time: float) -> Tuple[int, float]:
        """Scrub inside the active clip."""
        clip = self.current_clip
        local = max(0.0, min(local_time, self.duration_of(clip)))
        return self.seek(self.global_time(self.current_index, local))

    def select(self, index: int) -> Tuple[int, float]:
        """Jump to the start of a clip."""
        return self.seek(self.global_time(index, 0.0))

    def advance_on_clip_end(self) -> bool:
        """
        Move to the next clip, or stop at the last one.

        Returns:
            True if playback moved on, False if it stopped
        """
        clips = self.clips()
        if self.current_index < len(clips) - 1:
            self._activate(self.current_index + 1)
            self.local_time = 0.0
            if self.video is not None:
                self.video.seek(0.0)
                if self.is_playing:
                    self.video.play()
            self._sync_audio(self.position)
            return True

        self.is_playing = False
        if self.video is not None:
            self.video.pause()
        if self.audio is not None:
            self.audio.pause()
        logger.debug("Reached end of timeline", extra={"project_id": self.store.project_id})
        return False

    def reorder(self, old_index: int, new_index: int) -> bool:
        """
        Move a clip between timeline positions.

        Position 0 holds the locked intro: moving it, or moving anything into
        its slot, is rejected.

        Returns:
            True if the order changed or was already as requested, False if rejected

        Raises:
            ValidationError: If an index is out of range
        """
        clips = self.clips()
        for value in (old_index, new_index):
            if not 0 <= value < len(clips):
                raise ValidationError(f"Timeline position {value} out of range")

        if new_index == 0 or clips[old_index].locked or clips[new_index].locked:
            logger.info(
                f"Rejected reorder {old_index} -> {new_index} involving the locked intro",
                extra={"project_id": self.store.project_id},
            )
            return False
        if old_index == new_index:
            return True

        ids = [clip.id for clip in clips[1:]]
        moved = ids.pop(old_index - 1)
        ids.insert(new_index - 1, moved)
        self._order = ids
        if self.current_clip.id != self._loaded_clip_id:
            self._activate(self.current_index, force=True)
        return True

    def reset_order(self) -> None:
        self._order = None

    # Transport

    def play(self) -> None:
        self.is_playing = True
        self._activate(self.current_index)
        if self.video is not None:
            self.video.play()
        self._sync_audio(self.position)

    def pause(self) -> None:
        self.is_playing = False
        if self.video is not None:
            self.video.pause()
        if self.audio is not None:
            self.audio.pause()

    def toggle(self) -> bool:
        if self.is_playing:
            self.pause()
        else:
            self.play()
        return self.is_playing

    def set_playback_rate(self, rate: float) -> None:
        validate_playback_speed(rate)
        self.playback_rate = rate
        for element in (self.video, self.audio):
            if element is not None:
                element.set_playback_rate(rate)

    def set_music_volume(self, volume: float) -> None:
        validate_music_volume(volume)
        self.music_volume = volume
        if self.audio is not None:
            self.audio.set_volume(volume)

    # Media events

    def on_time_update(self, local_time: float) -> float:
        """Video time advanced. Returns the new global time."""
        self.local_time = local_time
        position = self.position
        self._sync_audio(position)
        return position

    def on_duration_change(self, duration: float) -> None:
        """Record the measured duration of the active clip."""
        clip = self.current_clip
        if clip.locked or not duration or duration <= 0:
            return
        self.store.update_clip_duration(clip.id, duration)

    def on_ended(self) -> bool:
        return self.advance_on_clip_end()

    def on_play(self) -> None:
        self.is_playing = True
        self._sync_audio(self.position)

    def on_pause(self) -> None:
        self.is_playing = False
        if self.audio is not None and not self.audio.paused:
            self.audio.pause()

    # Internals

    def _activate(self, index: int, force: bool = False) -> None:
        self.current_index = index
        clip = self.current_clip
        if self.video is None or (clip.id == self._loaded_clip_id and not force):
            return
        self._loaded_clip_id = clip.id
        if clip.url:
            self.video.load(clip.url)
            self.video.set_playback_rate(self.playback_rate)

    def _ensure_audio_source(self) -> bool:
        track = self.audio_track
        if self.audio is None or track is None:
            return False
        if track.url != self._audio_url:
            self._audio_url = track.url
            self.audio.load(track.url)
            self.audio.set_volume(track.volume)
            self.audio.set_playback_rate(self.playback_rate)
        return True

    def _sync_audio(self, global_time: float) -> None:
        if not self._ensure_audio_source():
            return

        intro_duration = self.duration_of(self.intro)
        if global_time < intro_duration:
            # Music starts after the intro
            if not self.audio.paused:
                self.audio.pause()
            if self.audio.current_time != 0:
                self.audio.seek(0.0)
            return

        target = global_time - intro_duration
        if abs(self.audio.current_time - target) > self.resync_threshold:
            self.audio.seek(target)
        if self.is_playing and self.audio.paused:
            self.audio.play()
