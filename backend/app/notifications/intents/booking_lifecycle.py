from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from app import models
from app.auth.identity import Identity
from app.models import BookingStatus, NotificationType
from app.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

STATUS_UPDATED_TITLE = "Booking status updated"


@dataclass(frozen=True)
class StatusMessages:
    customer: str
    craftsman: str
    type: NotificationType


# Every status has an entry; ``None`` means the change is silent.
STATUS_MESSAGES: Dict[BookingStatus, Optional[StatusMessages]] = {
    BookingStatus.PENDING: None,
    BookingStatus.CONFIRMED: StatusMessages(
        customer="Your booking has been confirmed by the craftsman",
        craftsman="The new booking has been confirmed",
        type=NotificationType.BOOKING_CONFIRMED,
    ),
    BookingStatus.IN_PROGRESS: StatusMessages(
        customer="The craftsman has started working on your service",
        craftsman="You have started working on the service",
        type=NotificationType.BOOKING_CONFIRMED,
    ),
    BookingStatus.COMPLETED: StatusMessages(
        customer="The service has been completed successfully",
        craftsman="The service has been completed",
        type=NotificationType.BOOKING_COMPLETED,
    ),
    BookingStatus.CANCELLED: StatusMessages(
        customer="The booking has been cancelled",
        craftsman="The booking has been cancelled",
        type=NotificationType.BOOKING_CANCELLED,
    ),
}


def send_booking_status_notifications(
    dispatcher: NotificationDispatcher,
    booking: models.Booking,
    actor: Identity,
) -> int:
    """Notify the parties of a booking after its status changed.

    The customer always hears about it; the craftsman only when someone
    else made the change. Returns the number of notifications written.
    """
    messages = STATUS_MESSAGES.get(BookingStatus(booking.status))
    if messages is None:
        return 0

    sent = 0
    if dispatcher.notify_safely(
        booking.customer_id, STATUS_UPDATED_TITLE, messages.customer, messages.type
    ):
        sent += 1
    if actor.subject_id != booking.craftsman_id:
        if dispatcher.notify_safely(
            booking.craftsman_id, STATUS_UPDATED_TITLE, messages.craftsman, messages.type
        ):
            sent += 1
    logger.info(
        "Booking %s status %s: %d notification(s) sent",
        booking.id,
        BookingStatus(booking.status).value,
        sent,
    )
    return sent


def _format_amount(amount: Decimal | float) -> str:
    return f"{Decimal(str(amount)).quantize(Decimal('0.01'))}"


def send_payment_notifications(
    dispatcher: NotificationDispatcher, payment: models.Payment
) -> None:
    amount = _format_amount(payment.amount)
    dispatcher.notify_safely(
        payment.customer_id,
        "Payment confirmed",
        f"Payment of {amount} {payment.currency} for your booking has been confirmed",
        NotificationType.PAYMENT_CONFIRMED,
    )
    dispatcher.notify_safely(
        payment.craftsman_id,
        "New payment",
        f"A payment of {amount} {payment.currency} was made for booking {payment.booking_id}",
        NotificationType.PAYMENT_RECEIVED,
    )


def send_review_notification(
    dispatcher: NotificationDispatcher,
    review: models.Review,
    customer_email: str,
) -> None:
    dispatcher.notify_safely(
        review.craftsman_id,
        "New review",
        f"Customer {customer_email} rated you {review.rating} stars",
        NotificationType.REVIEW_RECEIVED,
    )
