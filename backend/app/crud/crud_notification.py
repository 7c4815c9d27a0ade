from sqlalchemy.orm import Session
from typing import Iterable, List

from .. import models


def create_notification(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    type: models.NotificationType,
) -> models.Notification:
    db_obj = models.Notification(
        user_id=user_id, title=title, message=message, type=type
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def get_notifications_for_user(
    db: Session,
    user_id: int,
    *,
    unread_only: bool = False,
    skip: int = 0,
    limit: int | None = None,
) -> List[models.Notification]:
    """Return notifications newest first with optional pagination."""
    query = db.query(models.Notification).filter(models.Notification.user_id == user_id)
    if unread_only:
        query = query.filter(models.Notification.is_read.is_(False))
    query = query.order_by(
        models.Notification.created_at.desc(), models.Notification.id.desc()
    )
    if skip:
        query = query.offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_notification(db: Session, notification_id: int) -> models.Notification | None:
    return (
        db.query(models.Notification)
        .filter(models.Notification.id == notification_id)
        .first()
    )


def mark_as_read(
    db: Session, db_notification: models.Notification
) -> models.Notification:
    db_notification.is_read = True
    db.commit()
    db.refresh(db_notification)
    return db_notification


def mark_many_read(db: Session, user_id: int, notification_ids: Iterable[int]) -> int:
    """Mark the given notifications read; ids owned by other users are ignored."""
    ids = list({int(i) for i in notification_ids})
    if not ids:
        return 0
    updated = (
        db.query(models.Notification)
        .filter(
            models.Notification.user_id == user_id,
            models.Notification.id.in_(ids),
            models.Notification.is_read.is_(False),
        )
        .update({models.Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return int(updated or 0)


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(models.Notification)
        .filter(
            models.Notification.user_id == user_id,
            models.Notification.is_read.is_(False),
        )
        .update({models.Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return int(updated or 0)
