"""
notifications.py

Completion callbacks for the change sweeps. They publish on a Redis pub/sub
channel; the web tier relays the message to connected clients.
"""
import json
import logging
import time

from watchtracker.core.config import settings
from watchtracker.core.redis_client import get_redis_sync

logger = logging.getLogger(__name__)


def publish_content_update(content_type: str, message: str) -> int:
    """Publish a content update notification. Returns the number of receiving subscribers."""
    payload = {
        "type": f"{content_type}_updates",
        "message": message,
        "timestamp": int(time.time()),
    }
    receivers = get_redis_sync().publish(settings.content_updates_channel, json.dumps(payload))
    logger.info(f"Published {content_type} update notification to {receivers} subscriber(s)")
    return receivers


def notify_show_updates() -> int:
    return publish_content_update("show", "Show data has been updated")


def notify_movie_updates() -> int:
    return publish_content_update("movie", "Movie data has been updated")
