from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from .. import crud, schemas
from ..auth.identity import Identity
from ..core.errors import NotFoundError
from ..models.user import UserRole
from ..notifications.dispatcher import NotificationDispatcher
from .dependencies import get_db, get_current_identity, get_dispatcher, require_role

router = APIRouter(tags=["notifications"])

logger = logging.getLogger(__name__)


@router.get("/", response_model=List[schemas.NotificationResponse])
def read_my_notifications(
    unread_only_camel: Optional[bool] = Query(default=None, alias="unreadOnly"),
    unread_only: Optional[bool] = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Retrieve the caller's notifications, newest first.

    The unread filter is accepted as ``unreadOnly`` or ``unread_only``.
    """
    unread = unread_only_camel if unread_only_camel is not None else unread_only
    return crud.crud_notification.get_notifications_for_user(
        db, identity.subject_id, unread_only=bool(unread), skip=skip, limit=limit
    )


@router.post(
    "/",
    response_model=schemas.NotificationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_notification(
    notification_in: schemas.NotificationCreate,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    identity: Identity = Depends(require_role(UserRole.ADMIN)),
):
    """Send a notification to any user (admin only)."""
    notif = dispatcher.notify(
        notification_in.user_id,
        notification_in.title,
        notification_in.message,
        notification_in.type,
    )
    logger.info("Admin %s notified user %s", identity.subject_id, notif.user_id)
    return notif


@router.post("/mark-read", response_model=schemas.NotificationMarkReadResponse)
def mark_notifications_read(
    payload: schemas.NotificationMarkRead,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Mark the given notifications read; ids the caller does not own are skipped."""
    updated = crud.crud_notification.mark_many_read(
        db, identity.subject_id, payload.notification_ids
    )
    return {"message": "Notifications marked as read", "updated": updated}


@router.put("/read-all", response_model=schemas.NotificationMarkReadResponse)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Mark all notifications as read for the current user."""
    updated = crud.crud_notification.mark_all_read(db, identity.subject_id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.put(
    "/{notification_id}/read",
    response_model=schemas.NotificationResponse,
)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Mark a notification as read."""
    db_notif = crud.crud_notification.get_notification(db, notification_id)
    if not db_notif or db_notif.user_id != identity.subject_id:
        raise NotFoundError("Notification not found", {"notification_id": "not_found"})
    return crud.crud_notification.mark_as_read(db, db_notif)
