"""Domain errors raised by services and translated at the HTTP boundary."""

from typing import Dict, Optional

from fastapi import status


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"
    headers: Optional[Dict[str, str]] = None

    def __init__(
        self,
        message: Optional[str] = None,
        field_errors: Optional[Dict[str, str]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.field_errors = field_errors or {}
        super().__init__(self.message)


class UnauthenticatedError(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidTransitionError(DomainError):
    default_message = "Cannot change the booking to the requested status"


class InvalidStateError(DomainError):
    default_message = "Operation not allowed in the current state"


class InvalidInputError(DomainError):
    default_message = "Invalid input"


class PaymentFailedError(DomainError):
    default_message = "Payment failed"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "The record was modified by another request; reload and retry"


__all__ = [
    "DomainError",
    "UnauthenticatedError",
    "ForbiddenError",
    "NotFoundError",
    "InvalidTransitionError",
    "InvalidStateError",
    "InvalidInputError",
    "PaymentFailedError",
    "ConflictError",
]
