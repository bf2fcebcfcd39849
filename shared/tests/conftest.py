"""
Pytest configuration and fixtures.
"""

import pytest


@pytest.fixture
def test_env_file(tmp_path):
    """Create a temporary .env file for testing."""
    env_file = tmp_path / ".env"
    env_content = """
API_BASE_URL=https://api.test.example.com/
MEDIA_BASE_URL=https://media.test.example.com
REDIS_URL=redis://localhost:6379
ENVIRONMENT=development
LOG_LEVEL=DEBUG
IMAGE_POLL_INTERVAL=1.5
SCENE_VIDEO_POLL_MAX_ATTEMPTS=20
VIDEO_BACKEND=interpolation
"""
    env_file.write_text(env_content)
    return env_file


@pytest.fixture
def status_payload():
    """Raw status body as returned by a video backend."""
    return {
        "status": "processing",
        "completed": 1,
        "total": 2,
        "currentTitle": "Road Trip",
        "videos": [
            {"index": 1, "success": True, "videoUrl": "/videos/1.mp4", "duration": 8},
            {"index": 2, "success": False, "error": "render failed"},
        ],
        "musicUrl": "/audio/score.mp3",
    }
