import asyncio
import gc

import pytest

from app.core.errors import NotFoundError
from app.models import Notification, NotificationType, UserRole
from app.notifications import dispatcher as dispatcher_module
from app.notifications.dispatcher import NotificationDispatcher, realtime_payload, run_soon

from conftest import RecordingChannel, auth_headers, make_user

NOTIFICATIONS = "/api/v1/notifications"


def _seed(db, user, count, ntype=NotificationType.SYSTEM):
    dispatcher = NotificationDispatcher(db)
    return [
        dispatcher.notify(user.id, f"Title {i}", f"Message {i}", ntype)
        for i in range(count)
    ]


def test_notify_persists_then_publishes(db, channel):
    user = make_user(db)
    dispatcher = NotificationDispatcher(db, channel)

    notif = dispatcher.notify(user.id, "Hello", "World", NotificationType.SYSTEM)

    stored = db.get(Notification, notif.id)
    assert stored.is_read is False
    assert stored.type == NotificationType.SYSTEM
    assert channel.events == [(user.id, realtime_payload(notif))]
    payload = channel.events[0][1]
    assert set(payload) == {"id", "title", "message", "type", "timestamp"}
    assert payload["type"] == "SYSTEM"


def test_notify_unknown_recipient(db, channel):
    with pytest.raises(NotFoundError):
        NotificationDispatcher(db, channel).notify(999, "x", "y", NotificationType.SYSTEM)
    assert db.query(Notification).count() == 0
    assert channel.events == []


def test_publish_failure_keeps_the_row(db, caplog):
    user = make_user(db)
    dispatcher = NotificationDispatcher(db, RecordingChannel(fail=True))

    notif = dispatcher.notify(user.id, "Hello", "World", NotificationType.SYSTEM)

    assert db.get(Notification, notif.id) is not None
    assert any("Realtime publish failed" in r.getMessage() for r in caplog.records)


def test_notify_safely_returns_none_on_failure(db, channel):
    assert (
        NotificationDispatcher(db, channel).notify_safely(
            12345, "x", "y", NotificationType.SYSTEM
        )
        is None
    )


def test_notify_without_channel_only_persists(db):
    user = make_user(db)
    notif = NotificationDispatcher(db).notify(user.id, "a", "b", NotificationType.SYSTEM)
    assert notif.id is not None


def test_publish_is_scheduled_on_running_loop(db, channel):
    user = make_user(db)
    dispatcher = NotificationDispatcher(db, channel)

    async def main():
        dispatcher.notify(user.id, "Async", "Path", NotificationType.SYSTEM)
        for _ in range(5):
            if channel.events:
                break
            await asyncio.sleep(0)

    asyncio.run(main())
    assert [uid for uid, _ in channel.events] == [user.id]


def test_scheduled_task_is_held_until_done():
    started = []

    async def publish():
        started.append(True)
        await asyncio.sleep(0)

    async def main():
        run_soon(publish)
        assert len(dispatcher_module._pending_tasks) == 1
        gc.collect()
        for _ in range(5):
            await asyncio.sleep(0)
        assert not dispatcher_module._pending_tasks

    asyncio.run(main())
    assert started == [True]


def test_list_and_unread_filter(client, db):
    user = make_user(db)
    first, second, third = _seed(db, user, 3)
    _seed(db, make_user(db), 2)
    headers = auth_headers(user)

    res = client.get(f"{NOTIFICATIONS}/", headers=headers)
    assert res.status_code == 200
    assert {n["id"] for n in res.json()} == {first.id, second.id, third.id}

    marked = client.post(
        f"{NOTIFICATIONS}/mark-read",
        json={"notificationIds": [first.id, second.id]},
        headers=headers,
    )
    assert marked.status_code == 200
    assert marked.json() == {"message": "Notifications marked as read", "updated": 2}

    unread = client.get(f"{NOTIFICATIONS}/", params={"unreadOnly": "true"}, headers=headers)
    assert [n["id"] for n in unread.json()] == [third.id]
    snake = client.get(f"{NOTIFICATIONS}/", params={"unread_only": "true"}, headers=headers)
    assert [n["id"] for n in snake.json()] == [third.id]


def test_mark_read_ignores_foreign_ids(client, db):
    user, other = make_user(db), make_user(db)
    (foreign,) = _seed(db, other, 1)

    res = client.post(
        f"{NOTIFICATIONS}/mark-read",
        json={"notification_ids": [foreign.id]},
        headers=auth_headers(user),
    )

    assert res.json()["updated"] == 0
    db.expire_all()
    assert db.get(Notification, foreign.id).is_read is False


def test_mark_single_read(client, db):
    user, other = make_user(db), make_user(db)
    (mine,) = _seed(db, user, 1)

    res = client.put(f"{NOTIFICATIONS}/{mine.id}/read", headers=auth_headers(user))
    assert res.status_code == 200
    assert res.json()["is_read"] is True

    res = client.put(f"{NOTIFICATIONS}/{mine.id}/read", headers=auth_headers(other))
    assert res.status_code == 404


def test_mark_all_read(client, db):
    user = make_user(db)
    _seed(db, user, 3)

    res = client.put(f"{NOTIFICATIONS}/read-all", headers=auth_headers(user))

    assert res.status_code == 200
    assert res.json()["updated"] == 3
    unread = client.get(f"{NOTIFICATIONS}/", params={"unreadOnly": True}, headers=auth_headers(user))
    assert unread.json() == []


def test_admin_sends_notification(client, db, channel):
    admin = make_user(db, UserRole.ADMIN)
    user = make_user(db)

    res = client.post(
        f"{NOTIFICATIONS}/",
        json={"user_id": user.id, "title": "Maintenance", "message": "Back soon"},
        headers=auth_headers(admin),
    )

    assert res.status_code == 201
    assert res.json()["type"] == "SYSTEM"
    assert channel.for_user(user.id)[0]["title"] == "Maintenance"


def test_non_admin_cannot_send_notification(client, db):
    user = make_user(db)
    res = client.post(
        f"{NOTIFICATIONS}/",
        json={"user_id": user.id, "title": "Hi", "message": "There"},
        headers=auth_headers(user),
    )
    assert res.status_code == 403


def test_admin_notification_for_unknown_user(client, db):
    admin = make_user(db, UserRole.ADMIN)
    res = client.post(
        f"{NOTIFICATIONS}/",
        json={"user_id": 9999, "title": "Hi", "message": "There"},
        headers=auth_headers(admin),
    )
    assert res.status_code == 404
    assert res.json()["detail"]["field_errors"] == {"user_id": "not_found"}


def test_notifications_require_auth(client):
    assert client.get(f"{NOTIFICATIONS}/").status_code == 401
