"""Best-effort Redis pub/sub notifications for leaderboard changes."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


async def publish(redis: object | None, channel: str, payload: dict[str, Any]) -> None:
    """Publish a JSON message. Failures are logged and never raised."""
    if redis is None:
        return
    try:
        await redis.publish(channel, json.dumps(payload, default=str))  # type: ignore[union-attr]
    except Exception:
        logger.warning("Failed to publish %s event", channel, exc_info=True)
