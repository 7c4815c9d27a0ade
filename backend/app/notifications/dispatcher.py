"""Persist a notification, then push it to the user's realtime channel.

The durable row is the source of truth: a failed write propagates to the
caller, a failed push is logged and dropped (clients catch up by polling
``GET /notifications``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from anyio import from_thread
from sqlalchemy.orm import Session

from .. import models
from ..core.errors import NotFoundError
from ..crud import crud_notification
from ..realtime.registry import RealtimeChannel

logger = logging.getLogger(__name__)

# strong references to scheduled publish tasks until they finish
_pending_tasks: set["asyncio.Task[None]"] = set()


def realtime_payload(notif: models.Notification) -> dict[str, Any]:
    created = notif.created_at
    return {
        "id": notif.id,
        "title": notif.title,
        "message": notif.message,
        "type": models.NotificationType(notif.type).value,
        "timestamp": created.isoformat() if created else None,
    }


def _finish_task(task: "asyncio.Task[None]") -> None:
    _pending_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Realtime publish task failed: %s", exc)


def run_soon(fn: Callable[[], Awaitable[None]]) -> None:
    """Run an async callable from sync or async code.

    On the event loop it is scheduled as a task; from a server worker thread
    it is submitted to the owning loop and awaited; with no loop at all
    (scripts, direct unit calls) it runs to completion in a fresh loop.
    ``fn`` must not raise.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None
    if loop is not None:
        task = loop.create_task(fn())
        _pending_tasks.add(task)
        task.add_done_callback(_finish_task)
        return
    try:
        from_thread.run(fn)
        return
    except RuntimeError:
        # Not inside an AnyIO worker thread
        pass
    asyncio.run(fn())


class NotificationDispatcher:
    def __init__(self, db: Session, channel: Optional[RealtimeChannel] = None) -> None:
        self.db = db
        self.channel = channel

    def notify(
        self,
        recipient_id: int,
        title: str,
        message: str,
        ntype: models.NotificationType,
    ) -> models.Notification:
        """Write one notification row, then best-effort publish it."""
        if self.db.get(models.User, recipient_id) is None:
            raise NotFoundError(
                "Recipient does not exist", {"user_id": "not_found"}
            )
        notif = crud_notification.create_notification(
            self.db,
            user_id=recipient_id,
            title=title,
            message=message,
            type=ntype,
        )
        logger.info("Notify user=%s type=%s id=%s", recipient_id, notif.type.value, notif.id)
        self.publish(recipient_id, realtime_payload(notif))
        return notif

    def notify_safely(
        self,
        recipient_id: int,
        title: str,
        message: str,
        ntype: models.NotificationType,
    ) -> Optional[models.Notification]:
        """``notify`` for side effects: never raises, returns None on failure."""
        try:
            return self.notify(recipient_id, title, message, ntype)
        except Exception:
            logger.exception(
                "Notification dispatch failed user=%s type=%s", recipient_id, ntype
            )
            self.db.rollback()
            return None

    def publish(self, recipient_id: int, payload: dict[str, Any]) -> None:
        channel = self.channel
        if channel is None:
            return

        async def _publish() -> None:
            try:
                await channel.publish(int(recipient_id), payload)
            except Exception as exc:
                logger.warning(
                    "Realtime publish failed user=%s: %s", recipient_id, exc
                )

        try:
            run_soon(_publish)
        except Exception as exc:  # pragma: no cover - scheduling errors
            logger.warning("Realtime publish scheduling failed user=%s: %s", recipient_id, exc)


__all__ = ["NotificationDispatcher", "realtime_payload", "run_soon"]
