"""
Pytest configuration and fixtures for studio tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from modules.poller import ImmediateScheduler, Poller
from shared.generation_client import GenerationClient
from shared.models import CombineResponse, JobStatusResponse, JobSubmissionResponse
from shared.redis_client import RedisClient


@pytest.fixture
def mock_redis_client():
    """Mock RedisClient for testing (no connection)."""
    mock_client = MagicMock(spec=RedisClient)
    mock_client.delete = AsyncMock(return_value=True)
    mock_client.get_json = AsyncMock(return_value=None)
    mock_client.set_json = AsyncMock(return_value=True)
    mock_client.publish = AsyncMock(return_value=1)
    mock_client.health_check = AsyncMock(return_value=True)
    mock_client.close = AsyncMock()
    return mock_client


@pytest.fixture
def mock_generation_client():
    """Mock generation service client returning completed jobs."""
    client = MagicMock(spec=GenerationClient)

    client.start_image_job = AsyncMock(
        return_value=JobSubmissionResponse(success=True, job_id="img-1")
    )
    client.get_image_job_status = AsyncMock(return_value=JobStatusResponse.model_validate({
        "status": "completed",
        "completed": 2,
        "total": 2,
        "results": [
            {
                "index": i,
                "success": True,
                "imageUrl": f"https://img.example.com/{i}.png",
                "frames": [
                    {"success": True, "imageUrl": f"https://img.example.com/{i}-{f}.png"}
                    for f in range(3)
                ],
            }
            for i in (1, 2)
        ],
    }))

    client.start_scene_video_job = AsyncMock(
        return_value=JobSubmissionResponse(success=True, job_id="vid-1")
    )
    client.get_scene_video_job_status = AsyncMock(return_value=JobStatusResponse.model_validate({
        "status": "completed",
        "completed": 2,
        "total": 2,
        "videos": [
            {"index": i, "success": True, "videoUrl": f"/videos/{i}.mp4", "duration": 8}
            for i in (1, 2)
        ],
        "musicUrl": "/audio/score.mp3",
    }))

    client.combine_videos = AsyncMock(return_value=CombineResponse(
        success=True, combined_video_url="https://cdn.example.com/final.mp4"
    ))
    client.get_credits = AsyncMock(return_value=100)
    client.deduct_credits = AsyncMock(return_value={"success": True})
    client.close = AsyncMock()
    return client


@pytest.fixture
def instant_poller():
    return Poller(scheduler=ImmediateScheduler())


@pytest.fixture
def mock_events():
    return AsyncMock()


@pytest.fixture
def sample_snapshot():
    """Saved project record as written by ProjectPersistence."""
    return {
        "projectId": "project-1",
        "scenes": [
            {"id": "s1", "index": 0, "title": "First Meeting", "description": "Coffee shop"},
            {"id": "s2", "index": 1, "title": "Road Trip", "description": "Coast highway"},
        ],
        "images": [],
        "videos": [
            {"id": "s1", "index": 0, "title": "First Meeting", "url": "/videos/1.mp4", "success": True},
            {"id": "s2", "index": 1, "title": "Road Trip", "success": False, "error": "render failed"},
        ],
        "musicUrl": "/audio/score.mp3",
    }
