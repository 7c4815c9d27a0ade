from __future__ import annotations

import logging

from app import models
from app.auth.identity import Identity
from app.models import NotificationType
from app.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_LABEL = "General service"


def send_new_booking_notification(
    dispatcher: NotificationDispatcher,
    booking: models.Booking,
    customer: Identity,
) -> None:
    """Tell the craftsman a customer just booked them."""
    service_label = booking.service_type or DEFAULT_SERVICE_LABEL
    message = f"You have a new booking from {customer.email} for: {service_label}"
    notif = dispatcher.notify_safely(
        booking.craftsman_id,
        "New booking",
        message,
        NotificationType.BOOKING_REQUEST,
    )
    if notif is None:
        logger.error(
            "Failed to send booking notification for booking %s", booking.id
        )
