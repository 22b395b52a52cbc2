from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis

from app.game.battle_royale.types import BattleRoyaleNotification

logger = structlog.get_logger(__name__)


class BroadcastChannel(Protocol):
    async def publish(self, topic: str, payload: dict[str, Any]) -> None: ...


@dataclass(frozen=True, slots=True)
class PublishedMessage:
    topic: str
    payload: dict[str, Any]


class InMemoryBroadcastChannel:
    def __init__(self) -> None:
        self.messages: list[PublishedMessage] = []

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        self.messages.append(PublishedMessage(topic=topic, payload=payload))

    def events(self) -> list[str]:
        return [str(message.payload.get("event")) for message in self.messages]


class RedisBroadcastChannel:
    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisBroadcastChannel:
        return cls(Redis.from_url(redis_url, decode_responses=True))

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        await self._redis.publish(topic, json.dumps(payload, default=str))

    async def aclose(self) -> None:
        await self._redis.aclose()


def notification_message(notification: BattleRoyaleNotification) -> dict[str, Any]:
    return {"event": notification.event, "data": notification.payload}


async def dispatch_notifications(
    channel: BroadcastChannel,
    notifications: Sequence[BattleRoyaleNotification],
) -> dict[str, int]:
    """Publishes committed notifications in order.

    Failures are logged and counted; they never propagate to the caller.
    """
    published = 0
    failed = 0
    for notification in notifications:
        try:
            await channel.publish(notification.topic, notification_message(notification))
        except Exception:
            failed += 1
            logger.exception(
                "battle_royale_notification_failed",
                topic=notification.topic,
                notification_event=notification.event,
            )
            continue
        published += 1
    return {"published": published, "failed": failed}
