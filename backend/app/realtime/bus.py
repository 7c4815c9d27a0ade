from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Optional

from redis import asyncio as aioredis

from .registry import ConnectionRegistry, RealtimeChannel, user_topic

logger = logging.getLogger(__name__)

INSTANCE_ID = os.getenv("INSTANCE_ID", "inst-" + os.urandom(4).hex())


class RedisChannel:
    """Realtime channel backed by Redis pub/sub.

    ``publish`` sends to ``<prefix>user_<id>``; every process runs one
    pattern consumer that re-delivers to its own ``ConnectionRegistry``, so a
    push reaches the user's sockets regardless of which instance holds them.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        registry: ConnectionRegistry,
        prefix: str = "ws-topic:",
    ) -> None:
        self.redis = redis
        self.registry = registry
        self.prefix = prefix
        self._consumer: Optional[asyncio.Task] = None

    @classmethod
    def from_url(cls, url: str, registry: ConnectionRegistry, prefix: str = "ws-topic:") -> "RedisChannel":
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=5,
            health_check_interval=30,
            retry_on_timeout=True,
        )
        return cls(client, registry, prefix)

    def channel_name(self, user_id: int) -> str:
        return f"{self.prefix}{user_topic(user_id)}"

    async def publish(self, user_id: int, payload: dict[str, Any]) -> None:
        envelope = {
            "v": 1,
            "topic": user_topic(user_id),
            "user_id": int(user_id),
            "origin": INSTANCE_ID,
            "payload": payload,
        }
        await self.redis.publish(
            self.channel_name(user_id), json.dumps(envelope, separators=(",", ":"))
        )

    async def dispatch(self, raw: Any) -> None:
        """Deliver one bus message to local connections."""
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        try:
            envelope = json.loads(raw) if isinstance(raw, str) else raw
            user_id = int(envelope["user_id"])
            payload = envelope["payload"]
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Ignoring malformed realtime bus message: %s", exc)
            return
        await self.registry.publish(user_id, payload)

    async def start(self) -> None:
        """Start the background PSUBSCRIBE loop (idempotent)."""
        if self._consumer is not None:
            return
        pubsub = self.redis.pubsub()
        await pubsub.psubscribe(f"{self.prefix}user_*")

        async def _loop() -> None:
            try:
                async for msg in pubsub.listen():
                    if not isinstance(msg, dict) or msg.get("type") != "pmessage":
                        continue
                    try:
                        await self.dispatch(msg.get("data"))
                    except Exception:
                        # Keep the stream alive for other users
                        logger.exception("Realtime bus dispatch failed")
            finally:
                await pubsub.aclose()

        self._consumer = asyncio.create_task(_loop())
        logger.info("Realtime bus consumer started pattern=%suser_*", self.prefix)

    async def close(self) -> None:
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        await self.redis.aclose()


def build_channel(
    registry: ConnectionRegistry,
    backend: str = "memory",
    redis_url: Optional[str] = None,
    prefix: str = "ws-topic:",
) -> RealtimeChannel:
    """Pick the channel notifications are published to.

    ``memory`` delivers straight to this process's registry; ``redis`` goes
    through the shared bus so every instance sees the event.
    """
    if backend == "redis":
        if not redis_url:
            raise ValueError("REDIS_URL is required when REALTIME_BACKEND=redis")
        logger.info("Realtime backend: redis prefix=%s", prefix)
        return RedisChannel.from_url(redis_url, registry, prefix)
    return registry


__all__ = ["RedisChannel", "INSTANCE_ID", "build_channel"]
