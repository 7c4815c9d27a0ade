"""Status transitions and deletion of bookings.

Checks run in a fixed order: existence, relation to the booking, transition
legality, then the per-target role gate. Only after every check passes is the
booking written; notifications follow the commit and can never undo it.
"""

from __future__ import annotations

import enum
import logging
from decimal import Decimal
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from app import models
from app.auth.identity import Identity
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
)
from app.models import BookingStatus
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.intents.booking_lifecycle import send_booking_status_notifications

logger = logging.getLogger(__name__)


class BookingActor(str, enum.Enum):
    """How the caller relates to one particular booking."""

    CUSTOMER = "CUSTOMER"
    CRAFTSMAN = "CRAFTSMAN"
    ADMIN = "ADMIN"


ALL_ACTORS: FrozenSet[BookingActor] = frozenset(BookingActor)

TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Who may move a booking *into* each status.
STATUS_CAPABILITIES: Dict[BookingStatus, FrozenSet[BookingActor]] = {
    BookingStatus.PENDING: frozenset(),
    BookingStatus.CONFIRMED: frozenset({BookingActor.CRAFTSMAN, BookingActor.ADMIN}),
    BookingStatus.IN_PROGRESS: ALL_ACTORS,
    BookingStatus.COMPLETED: ALL_ACTORS,
    BookingStatus.CANCELLED: ALL_ACTORS,
}

CAPABILITY_DENIED_MESSAGES: Dict[BookingStatus, str] = {
    BookingStatus.CONFIRMED: "Only the craftsman can confirm the booking",
}


def resolve_actors(identity: Identity, booking: models.Booking) -> FrozenSet[BookingActor]:
    actors = set()
    if booking.customer_id == identity.subject_id:
        actors.add(BookingActor.CUSTOMER)
    if booking.craftsman_id == identity.subject_id:
        actors.add(BookingActor.CRAFTSMAN)
    if identity.is_admin:
        actors.add(BookingActor.ADMIN)
    return frozenset(actors)


def is_transition_allowed(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[BookingStatus(current)]


def can_set_status(actors: FrozenSet[BookingActor], target: BookingStatus) -> bool:
    return bool(actors & STATUS_CAPABILITIES[BookingStatus(target)])


def can_remove(actors: FrozenSet[BookingActor], status: BookingStatus) -> bool:
    """Parties may delete while PENDING; admins at any time."""
    if BookingActor.ADMIN in actors:
        return True
    return bool(actors) and BookingStatus(status) == BookingStatus.PENDING


def load_booking_detail(db: Session, booking_id: int) -> Optional[models.Booking]:
    return (
        db.query(models.Booking)
        .options(
            joinedload(models.Booking.customer),
            joinedload(models.Booking.craftsman).joinedload(models.User.craftsman_profile),
            joinedload(models.Booking.service),
            joinedload(models.Booking.review),
        )
        .filter(models.Booking.id == booking_id)
        .first()
    )


def _get_booking(db: Session, booking_id: int) -> models.Booking:
    booking = db.query(models.Booking).filter(models.Booking.id == booking_id).first()
    if booking is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    return booking


def read_booking(db: Session, identity: Identity, booking_id: int) -> models.Booking:
    booking = load_booking_detail(db, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    if not resolve_actors(identity, booking):
        raise ForbiddenError("Not authorized to view this booking", {"booking_id": "forbidden"})
    return booking


def request_transition(
    db: Session,
    dispatcher: NotificationDispatcher,
    identity: Identity,
    booking_id: int,
    target: BookingStatus,
    price: Optional[Decimal] = None,
) -> models.Booking:
    """Move a booking to ``target`` on behalf of ``identity``."""
    booking = _get_booking(db, booking_id)

    actors = resolve_actors(identity, booking)
    if not actors:
        raise ForbiddenError("Not authorized to update this booking")

    target = BookingStatus(target)
    current = BookingStatus(booking.status)
    if not is_transition_allowed(current, target):
        raise InvalidTransitionError(
            f"Cannot change booking status from {current.value} to {target.value}",
            {"status": "invalid_transition"},
        )

    if not can_set_status(actors, target):
        raise ForbiddenError(
            CAPABILITY_DENIED_MESSAGES.get(target, "Not authorized to set this status")
        )

    if price is not None and Decimal(str(price)) < 0:
        raise InvalidInputError("Price cannot be negative", {"price": "negative"})

    booking.status = target
    if price is not None:
        booking.price = Decimal(str(price))
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(
            "Booking %s was modified concurrently; %s by user %s rejected",
            booking_id,
            target.value,
            identity.subject_id,
        )
        raise ConflictError()
    db.refresh(booking)

    send_booking_status_notifications(dispatcher, booking, identity)

    return load_booking_detail(db, booking_id) or booking


def remove_booking(db: Session, identity: Identity, booking_id: int) -> dict:
    booking = _get_booking(db, booking_id)

    actors = resolve_actors(identity, booking)
    if not actors:
        raise ForbiddenError("Not authorized to delete this booking")
    if not can_remove(actors, booking.status):
        raise InvalidStateError(
            "Only pending bookings can be deleted",
            {"status": BookingStatus(booking.status).value},
        )

    db.delete(booking)
    db.commit()
    logger.info("Booking %s deleted by user %s", booking_id, identity.subject_id)
    return {"message": "Booking deleted successfully"}


__all__ = [
    "BookingActor",
    "TRANSITIONS",
    "STATUS_CAPABILITIES",
    "resolve_actors",
    "is_transition_allowed",
    "can_set_status",
    "can_remove",
    "load_booking_detail",
    "read_booking",
    "request_transition",
    "remove_booking",
]
