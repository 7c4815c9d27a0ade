from .user import User, UserRole
from .craftsman_profile import CraftsmanProfile
from .service import Service
from .booking import Booking
from .booking_status import BookingStatus
from .review import Review
from .notification import Notification, NotificationType
from .payment import Payment, PaymentStatus, PaymentProvider

__all__ = [
    "User",
    "UserRole",
    "CraftsmanProfile",
    "Service",
    "Booking",
    "BookingStatus",
    "Review",
    "Notification",
    "NotificationType",
    "Payment",
    "PaymentStatus",
    "PaymentProvider",
]
