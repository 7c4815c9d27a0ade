from .crud_user import user
from .crud_craftsman import craftsman, CraftsmanSearch
from .crud_booking import booking
from .crud_review import review
from .crud_payment import payment
from . import crud_notification

__all__ = [
    "user",
    "craftsman",
    "CraftsmanSearch",
    "booking",
    "review",
    "payment",
    "crud_notification",
]
