"""
Tests for event publisher service.
"""

import pytest
import json
from unittest.mock import AsyncMock, patch
from studio.services.event_publisher import channel_for, publish_event


@pytest.mark.asyncio
async def test_publish_event(mock_redis_client):
    """Test event publishing to Redis pub/sub."""
    with patch("studio.services.event_publisher.redis_client", mock_redis_client):
        project_id = "project-1"
        event_type = "progress"
        data = {"kind": "image", "completed": 1, "total": 3}

        await publish_event(project_id, event_type, data)

        # Verify publish was called
        assert mock_redis_client.publish.called

        # Verify channel format
        call_args = mock_redis_client.publish.call_args
        assert call_args[0][0] == f"project_events:{project_id}"

        # Verify message format (JSON string)
        event_data = json.loads(call_args[0][1])
        assert event_data["event_type"] == event_type
        assert event_data["data"] == data


@pytest.mark.asyncio
async def test_publish_event_message_format(mock_redis_client):
    """Test that message is JSON string, not Python dict."""
    with patch("studio.services.event_publisher.redis_client", mock_redis_client):
        await publish_event("project-1", "completed", {"kind": "video", "job_id": "vid-1"})

        message = mock_redis_client.publish.call_args[0][1]

        assert isinstance(message, str)
        event_data = json.loads(message)
        assert "event_type" in event_data
        assert "data" in event_data


@pytest.mark.asyncio
async def test_publish_event_failure_is_logged(mock_redis_client):
    """Publishing problems never reach the pipeline."""
    mock_redis_client.publish = AsyncMock(side_effect=Exception("connection reset"))

    with patch("studio.services.event_publisher.redis_client", mock_redis_client):
        await publish_event("project-1", "error", {"message": "boom"})

    mock_redis_client.publish.assert_awaited_once()


def test_channel_for():
    assert channel_for("abc") == "project_events:abc"
