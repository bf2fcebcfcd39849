"""
Tests for the Redis client wrapper.
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from shared.errors import RetryableError
from shared.redis_client import RedisClient


@pytest.fixture
def raw_redis():
    raw = MagicMock()
    raw.set = AsyncMock(return_value=True)
    raw.get = AsyncMock(return_value=None)
    raw.delete = AsyncMock(return_value=1)
    raw.publish = AsyncMock(return_value=2)
    raw.ping = AsyncMock(return_value=True)
    raw.aclose = AsyncMock()
    return raw


@pytest.fixture
def client(raw_redis):
    with patch("shared.redis_client.aioredis.from_url", return_value=raw_redis):
        yield RedisClient(url="redis://localhost:6379")


@pytest.mark.asyncio
async def test_set_json_prefixes_key(client, raw_redis):
    """Test keys are namespaced and values JSON-encoded."""
    await client.set_json("project:p1", {"projectId": "p1"}, ttl=60)

    args, kwargs = raw_redis.set.call_args
    assert args[0] == "storyreel:project:p1"
    assert json.loads(args[1]) == {"projectId": "p1"}
    assert kwargs["ex"] == 60


@pytest.mark.asyncio
async def test_custom_namespace(raw_redis):
    with patch("shared.redis_client.aioredis.from_url", return_value=raw_redis):
        client = RedisClient(url="redis://localhost:6379", namespace="test")

    await client.set_json("project:p1", {})

    assert raw_redis.set.call_args[0][0] == "test:project:p1"


@pytest.mark.asyncio
async def test_get_json(client, raw_redis):
    raw_redis.get.return_value = '{"scenes": []}'

    assert await client.get_json("project:p1") == {"scenes": []}
    raw_redis.get.assert_awaited_once_with("storyreel:project:p1")


@pytest.mark.asyncio
async def test_get_json_accepts_bytes(client, raw_redis):
    raw_redis.get.return_value = b'{"scenes": []}'

    assert await client.get_json("project:p1") == {"scenes": []}


@pytest.mark.asyncio
async def test_get_json_missing(client):
    assert await client.get_json("project:missing") is None


@pytest.mark.asyncio
async def test_get_json_corrupt(client, raw_redis):
    """Test that an undecodable record is reported as retryable."""
    raw_redis.get.return_value = "{not json"

    with pytest.raises(RetryableError) as exc_info:
        await client.get_json("project:p1")

    assert "Corrupt record" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_errors_are_retryable(client, raw_redis):
    raw_redis.set.side_effect = ConnectionError("refused")

    with pytest.raises(RetryableError) as exc_info:
        await client.set_json("project:p1", {"scenes": []})

    assert "Redis write failed" in str(exc_info.value)


@pytest.mark.asyncio
async def test_delete(client, raw_redis):
    assert await client.delete("project:p1") is True
    raw_redis.delete.return_value = 0
    assert await client.delete("project:p1") is False


@pytest.mark.asyncio
async def test_publish_prefixes_channel(client, raw_redis):
    assert await client.publish("project_events:p1", "{}") == 2
    raw_redis.publish.assert_awaited_once_with("storyreel:project_events:p1", "{}")


@pytest.mark.asyncio
async def test_health_check(client, raw_redis):
    assert await client.health_check() is True
    raw_redis.ping.side_effect = ConnectionError("down")
    assert await client.health_check() is False


@pytest.mark.asyncio
async def test_close(client, raw_redis):
    await client.close()
    raw_redis.aclose.assert_awaited_once()
