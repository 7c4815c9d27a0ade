import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth.identity import Identity
from ..core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from ..models.user import UserRole
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.intents.booking_lifecycle import send_review_notification
from .dependencies import get_db, get_dispatcher, require_role

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews"])


@router.get("/", response_model=List[schemas.ReviewDetails])
def list_reviews(
    craftsman_id: Optional[int] = Query(default=None),
    booking_id: Optional[int] = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Public list of reviews, newest first."""
    return crud.review.get_reviews(
        db, craftsman_id=craftsman_id, booking_id=booking_id, skip=skip, limit=limit
    )


@router.post("/", response_model=schemas.ReviewDetails, status_code=status.HTTP_201_CREATED)
def create_review(
    review_in: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    identity: Identity = Depends(require_role(UserRole.CUSTOMER)),
):
    """Leave a review for a completed booking."""
    booking = crud.booking.get_booking(db, review_in.booking_id)
    if booking is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    if booking.customer_id != identity.subject_id:
        raise ForbiddenError("Not authorized to review this booking", {"booking_id": "forbidden"})
    if booking.status != models.BookingStatus.COMPLETED:
        raise InvalidStateError(
            "Booking must be completed to leave a review",
            {"status": models.BookingStatus(booking.status).value},
        )
    if crud.review.get_review_by_booking(db, booking.id) is not None:
        raise InvalidStateError(
            "A review for this booking already exists", {"booking_id": "already_reviewed"}
        )

    try:
        review = crud.review.create_review(db, review_in, booking)
    except IntegrityError:
        db.rollback()
        raise ConflictError(
            "A review for this booking already exists", {"booking_id": "already_reviewed"}
        )
    logger.info("Review %s stored for craftsman %s", review.id, review.craftsman_id)
    send_review_notification(dispatcher, review, identity.email)
    return review
