"""Per-user fan-out of realtime events to connected WebSocket clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)

SEND_TIMEOUT = 10.0


def user_topic(user_id: int) -> str:
    return f"user_{int(user_id)}"


class RealtimeChannel(Protocol):
    async def publish(self, user_id: int, payload: dict[str, Any]) -> None:
        ...


class Connection(Protocol):
    async def send_json(self, data: Any) -> None:
        ...


class ConnectionRegistry:
    """Process-local map of user id -> live connections.

    One registry is created per application and handed to whoever needs it;
    connect on accept, disconnect when the socket closes.
    """

    def __init__(self) -> None:
        self.user_sockets: Dict[int, Set[Connection]] = {}

    async def connect(self, user_id: int, conn: Connection) -> None:
        self.user_sockets.setdefault(int(user_id), set()).add(conn)

    def disconnect(self, user_id: int, conn: Connection) -> None:
        conns = self.user_sockets.get(int(user_id))
        if not conns:
            return
        conns.discard(conn)
        if not conns:
            del self.user_sockets[int(user_id)]

    def connection_count(self, user_id: int) -> int:
        return len(self.user_sockets.get(int(user_id), ()))

    async def publish(self, user_id: int, payload: dict[str, Any]) -> None:
        for conn in list(self.user_sockets.get(int(user_id), set())):
            try:
                await asyncio.wait_for(conn.send_json(payload), timeout=SEND_TIMEOUT)
            except Exception as exc:
                logger.info("Dropping realtime connection for user %s: %s", user_id, exc)
                self.disconnect(int(user_id), conn)


__all__ = ["RealtimeChannel", "ConnectionRegistry", "user_topic"]
