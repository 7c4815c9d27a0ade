import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth.identity import Identity
from ..core.errors import InvalidStateError, NotFoundError
from ..models.user import UserRole
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.intents.booking_request import send_new_booking_notification
from ..services import booking_lifecycle
from .dependencies import get_current_identity, get_db, get_dispatcher, require_role

router = APIRouter(tags=["bookings"])

logger = logging.getLogger(__name__)


@router.get("/", response_model=List[schemas.BookingDetail])
def list_bookings(
    status_filter: Optional[models.BookingStatus] = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Bookings visible to the caller: own bookings, or everything for admins."""
    scope: dict = {}
    if identity.role == UserRole.CUSTOMER:
        scope["customer_id"] = identity.subject_id
    elif identity.role == UserRole.CRAFTSMAN:
        scope["craftsman_id"] = identity.subject_id
    return crud.booking.get_bookings(
        db, status=status_filter, skip=skip, limit=limit, **scope
    )


@router.post("/", response_model=schemas.BookingDetail, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: schemas.BookingCreate,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    identity: Identity = Depends(require_role(UserRole.CUSTOMER)),
):
    craftsman = crud.user.get_user(db, booking_in.craftsman_id)
    if craftsman is None or craftsman.role != UserRole.CRAFTSMAN:
        raise NotFoundError("Craftsman not found", {"craftsman_id": "not_found"})
    profile = craftsman.craftsman_profile
    if profile is None or not profile.is_approved or craftsman.is_blocked:
        raise InvalidStateError(
            "Craftsman is not available for booking", {"craftsman_id": "not_approved"}
        )
    if booking_in.service_id is not None:
        service = db.get(models.Service, booking_in.service_id)
        if service is None or service.craftsman_id != craftsman.id:
            raise NotFoundError(
                "Service not found for this craftsman", {"service_id": "not_found"}
            )

    booking = crud.booking.create_booking(db, booking_in, customer_id=identity.subject_id)
    logger.info(
        "Booking %s created customer=%s craftsman=%s",
        booking.id,
        booking.customer_id,
        booking.craftsman_id,
    )
    send_new_booking_notification(dispatcher, booking, identity)
    return booking_lifecycle.load_booking_detail(db, booking.id)


@router.get("/{booking_id}", response_model=schemas.BookingDetail)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return booking_lifecycle.read_booking(db, identity, booking_id)


@router.patch("/{booking_id}", response_model=schemas.BookingDetail)
def update_booking_status(
    booking_id: int,
    status_update: schemas.BookingStatusUpdate,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    identity: Identity = Depends(get_current_identity),
):
    """Move a booking through its lifecycle and notify the parties."""
    return booking_lifecycle.request_transition(
        db,
        dispatcher,
        identity,
        booking_id,
        status_update.status,
        price=status_update.price,
    )


@router.delete("/{booking_id}", response_model=schemas.BookingDeleteResponse)
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return booking_lifecycle.remove_booking(db, identity, booking_id)
