"""
Event publisher service.

Publishes pipeline events to Redis pub/sub so any open view of a project
can follow generation progress.
"""

import json
from typing import Dict, Any
from shared.redis_client import RedisClient
from shared.logging import get_logger

logger = get_logger(__name__)

redis_client = RedisClient()


def channel_for(project_id: str) -> str:
    return f"project_events:{project_id}"


async def publish_event(project_id: str, event_type: str, data: Dict[str, Any]) -> None:
    """
    Publish an event to a project's Redis pub/sub channel.

    Args:
        project_id: Project ID
        event_type: Event type (progress, completed, error)
        data: Event data dictionary
    """
    channel = channel_for(project_id)

    message = {
        "event_type": event_type,
        "data": data
    }

    try:
        message_json = json.dumps(message, default=str)
        await redis_client.publish(channel, message_json)

        logger.debug(
            "Event published",
            extra={"project_id": project_id, "event_type": event_type}
        )

    except Exception as e:
        logger.error(
            "Failed to publish event",
            exc_info=e,
            extra={"project_id": project_id, "event_type": event_type}
        )
