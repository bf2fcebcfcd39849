"""
Unit tests for the scene/clip store.
"""

import pytest

from modules.scene_store import SceneStore
from shared.errors import GenerationInProgressError, ValidationError
from shared.models import Clip, Frame, GeneratedImage, JobKind, Scene


@pytest.fixture
def store():
    return SceneStore("project-1")


def _image(index, frames_ok=2, frames_failed=0):
    frames = [Frame(success=True, image_ref=f"img-{index}-{i}") for i in range(frames_ok)]
    frames += [Frame(success=False, error="nsfw") for _ in range(frames_failed)]
    return GeneratedImage(index=index, title=f"Scene {index + 1}", frames=frames)


class TestScenes:
    """Test storyboard mutations."""

    def test_set_scenes_reassigns_dense_indices(self, store):
        store.set_scenes([Scene(title="A", index=7), Scene(title="B", index=3)])

        assert [s.index for s in store.scenes] == [0, 1]
        assert [s.title for s in store.scenes] == ["A", "B"]

    def test_scene_ids_are_stable_and_distinct(self, store):
        scenes = [Scene(title="A"), Scene(title="B")]
        store.set_scenes(scenes)

        assert store.scenes[0].id == scenes[0].id
        assert store.scenes[0].id != store.scenes[1].id

    def test_set_custom_prompt(self, store):
        store.set_scenes([Scene(title="A")])

        store.set_custom_prompt(0, "make it rain")

        assert store.scenes[0].custom_prompt == "make it rain"

    def test_set_custom_prompt_unknown_index(self, store):
        with pytest.raises(ValidationError):
            store.set_custom_prompt(3, "nope")


class TestImages:
    """Test image merges."""

    def test_merge_images_upserts_by_index(self, store):
        store.merge_images([_image(0), _image(2)])
        store.merge_images([_image(1), _image(0, frames_ok=3)])

        assert [i.index for i in store.images] == [0, 1, 2]
        assert len(store.image_at(0).frames) == 3

    def test_replace_images_drops_previous(self, store):
        store.merge_images([_image(0), _image(1), _image(2)])

        store.replace_images([_image(1)])

        assert [i.index for i in store.images] == [1]

    def test_video_eligible_requires_two_successful_frames(self, store):
        store.replace_images([
            _image(0, frames_ok=2),
            _image(1, frames_ok=1, frames_failed=2),
            _image(2, frames_ok=3),
        ])

        assert [i.index for i in store.video_eligible_images()] == [0, 2]


class TestClips:
    """Test clip merges and derived views."""

    def test_merge_and_replace_bump_version(self, store):
        start = store.version
        store.replace_clips([Clip(id="a", index=0, title="A", success=True, url="/a.mp4")])
        store.merge_clips([Clip(id="b", index=1, title="B")])

        assert store.version == start + 2

    def test_successful_and_failed(self, store):
        store.replace_clips([
            Clip(id="a", index=0, title="A", success=True, url="/a.mp4"),
            Clip(id="b", index=1, title="B", success=False, error="boom"),
            Clip(id="c", index=2, title="C", success=True, url="/c.mp4"),
        ])

        assert [c.id for c in store.successful_clips()] == ["a", "c"]
        assert store.failed_clip_indices() == [1]

    def test_update_clip_duration(self, store):
        store.replace_clips([Clip(id="a", index=0, title="A", success=True, url="/a.mp4")])

        assert store.update_clip_duration("a", 7.5) is True
        assert store.clip_at(0).duration == 7.5
        assert store.update_clip_duration("missing", 1.0) is False


class TestGeneratingFlags:
    """Test per-kind generating flags and errors."""

    def test_begin_twice_raises(self, store):
        store.begin_generation(JobKind.IMAGE)

        with pytest.raises(GenerationInProgressError):
            store.begin_generation(JobKind.IMAGE)

    def test_kinds_are_independent(self, store):
        store.begin_generation(JobKind.IMAGE)
        store.begin_generation(JobKind.VIDEO)

        store.end_generation(JobKind.IMAGE)

        assert store.is_generating(JobKind.IMAGE) is False
        assert store.is_generating(JobKind.VIDEO) is True

    def test_latest_error_overwrites(self, store):
        store.set_error(JobKind.VIDEO, "first", "JOB_FAILED")
        store.set_error(JobKind.VIDEO, "second", "TIMEOUT")

        assert store.last_error(JobKind.VIDEO).message == "second"
        assert store.last_error(JobKind.VIDEO).code == "TIMEOUT"

        store.clear_error(JobKind.VIDEO)
        assert store.last_error(JobKind.VIDEO) is None


class TestSnapshots:
    """Test snapshot export and restore."""

    def test_snapshot_round_trip(self, store):
        store.set_scenes([Scene(title="A", narration="Once")])
        store.replace_images([_image(0)])
        store.replace_clips([Clip(id=store.scenes[0].id, index=0, title="A", success=True, url="/a.mp4")])
        store.set_music_url("/music.mp3")
        store.set_combined_url("/final.mp4")

        snapshot = store.to_snapshot()
        restored = SceneStore("project-1")
        restored.load_snapshot(snapshot)

        assert snapshot["videos"][0]["url"] == "/a.mp4"
        assert restored.scenes[0].id == store.scenes[0].id
        assert restored.images[0].is_video_eligible is True
        assert restored.clips[0].playable is True
        assert restored.music_url == "/music.mp3"
        assert restored.combined_video_url == "/final.mp4"
