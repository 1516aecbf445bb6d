"""Hook consumed by the external notification service.

The core only announces ``match.created``; delivery (FCM, web push) belongs to
whichever worker subscribes to the ``matches`` channel.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from .models.match import MatchCreatedEvent
from .redis_bus import publish

LOGGER = logging.getLogger("uvicorn.error")

MATCHES_TOPIC = "matches"

MatchCreatedHook = Callable[[MatchCreatedEvent], Awaitable[None]]


async def publish_match_created(event: MatchCreatedEvent) -> None:
    delivered = await publish(MATCHES_TOPIC, event.model_dump(by_alias=True))
    if not delivered:
        LOGGER.debug("match.created for %s not published", event.match_id)


__all__ = ["MATCHES_TOPIC", "MatchCreatedHook", "publish_match_created"]
