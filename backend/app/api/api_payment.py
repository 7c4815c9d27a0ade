import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .. import crud, models, schemas
from ..auth.identity import Identity
from ..core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    PaymentFailedError,
)
from ..models.user import UserRole
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.intents.booking_lifecycle import send_payment_notifications
from ..services.payment_gateway import SimulatedGateway, get_payment_gateway
from .dependencies import get_current_identity, get_db, get_dispatcher, require_role

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])

PAYABLE_STATUSES = {models.BookingStatus.PENDING, models.BookingStatus.CONFIRMED}
ALREADY_PAID = "This booking has already been paid"


@router.post("/", response_model=schemas.PaymentResult, status_code=status.HTTP_201_CREATED)
def create_payment(
    payment_in: schemas.PaymentCreate,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    gateway: SimulatedGateway = Depends(get_payment_gateway),
    identity: Identity = Depends(require_role(UserRole.CUSTOMER)),
):
    """Charge the customer for a booking.

    A successful charge confirms a PENDING booking. Declined charges are
    stored as FAILED rows and answered with 400.
    """
    if payment_in.amount <= 0:
        raise InvalidInputError("Amount must be greater than zero", {"amount": "must_be_positive"})

    booking = crud.booking.get_booking(db, payment_in.booking_id)
    if booking is None:
        raise NotFoundError("Booking not found", {"booking_id": "not_found"})
    if booking.customer_id != identity.subject_id:
        raise ForbiddenError("Not authorized to pay for this booking", {"booking_id": "forbidden"})
    if booking.status not in PAYABLE_STATUSES:
        raise InvalidStateError(
            "Booking cannot be paid in its current status",
            {"status": models.BookingStatus(booking.status).value},
        )
    if crud.payment.get_completed_for_booking(db, booking.id) is not None:
        raise InvalidStateError(ALREADY_PAID, {"booking_id": "already_paid"})

    currency = payment_in.currency.upper()
    try:
        charge = gateway.charge(
            amount=payment_in.amount,
            currency=currency,
            provider=payment_in.provider.value,
            payment_method_id=payment_in.payment_method_id,
            booking_id=booking.id,
        )
    except PaymentFailedError as exc:
        failed = crud.payment.record_failure(
            db,
            booking,
            amount=payment_in.amount,
            currency=currency,
            provider=payment_in.provider,
            transaction_id=gateway.failed_reference(),
            payment_method_id=payment_in.payment_method_id,
            error=exc.message,
        )
        logger.warning("Payment %s failed for booking %s: %s", failed.transaction_id, booking.id, exc.message)
        raise

    try:
        payment = crud.payment.record_success(
            db, booking, charge, payment_in.payment_method_id
        )
    except StaleDataError:
        db.rollback()
        raise ConflictError()
    except IntegrityError:
        # another request stored the COMPLETED payment first
        db.rollback()
        logger.warning("Duplicate payment for booking %s rejected", booking.id)
        raise ConflictError(ALREADY_PAID, {"booking_id": "already_paid"})

    send_payment_notifications(dispatcher, payment)
    return {"message": "Payment completed successfully", "payment": payment}


@router.get("/", response_model=List[schemas.PaymentResponse])
def list_payments(
    booking_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    scope: dict = {}
    if identity.role == UserRole.CUSTOMER:
        scope["customer_id"] = identity.subject_id
    elif identity.role == UserRole.CRAFTSMAN:
        scope["craftsman_id"] = identity.subject_id
    return crud.payment.get_payments(db, booking_id=booking_id, **scope)
