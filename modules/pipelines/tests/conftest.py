"""
Pytest configuration and fixtures for pipeline tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from modules.poller import ImmediateScheduler, Poller
from modules.scene_store import ProjectPersistence, SceneStore
from shared.credit_tracking import CreditTracker
from shared.generation_client import GenerationClient
from shared.models import Frame, GeneratedImage, JobStatusResponse, JobSubmissionResponse, Scene


@pytest.fixture
def client():
    client = MagicMock(spec=GenerationClient)
    for name in (
        "start_image_job",
        "get_image_job_status",
        "start_interpolation_video_job",
        "get_interpolation_job_status",
        "start_scene_video_job",
        "get_scene_video_job_status",
        "combine_videos",
    ):
        setattr(client, name, AsyncMock())
    accepted = JobSubmissionResponse(success=True, job_id="job-123")
    client.start_image_job.return_value = accepted
    client.start_interpolation_video_job.return_value = accepted
    client.start_scene_video_job.return_value = accepted
    return client


@pytest.fixture
def scheduler():
    return ImmediateScheduler()


@pytest.fixture
def poller(scheduler):
    return Poller(scheduler=scheduler)


@pytest.fixture
def persistence():
    persistence = MagicMock(spec=ProjectPersistence)
    return persistence


@pytest.fixture
def credits():
    tracker = MagicMock(spec=CreditTracker)
    tracker.ensure_sufficient = AsyncMock(return_value=100)
    tracker.charge = AsyncMock(return_value=True)
    return tracker


@pytest.fixture
def scenes():
    return [
        Scene(title="First Meeting", description="Coffee shop", narration="It began..."),
        Scene(title="Road Trip", description="Coast highway"),
        Scene(title="Proposal", description="Beach at sunset"),
    ]


@pytest.fixture
def store(scenes):
    store = SceneStore("project-1")
    store.set_scenes(scenes)
    return store


@pytest.fixture
def store_with_images(store):
    store.replace_images([
        GeneratedImage(
            index=scene.index,
            scene_id=scene.id,
            title=scene.title,
            description=scene.description,
            image_ref=f"https://img.example.com/{scene.index}.png",
            frames=[
                Frame(success=True, image_ref=f"https://img.example.com/{scene.index}-a.png"),
                Frame(success=False, error="blocked"),
                Frame(success=True, image_ref=f"https://img.example.com/{scene.index}-c.png"),
            ],
        )
        for scene in store.scenes
    ])
    return store


@pytest.fixture
def make_status():
    """Factory building status responses from wire-shaped data."""
    def _make(state, completed=0, total=0, results=None, **extra):
        body = {"status": state, "completed": completed, "total": total, "results": results or []}
        body.update(extra)
        return JobStatusResponse.model_validate(body)
    return _make
