import enum


class BookingStatus(str, enum.Enum):
    """Central booking status enumeration used across the application."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @classmethod
    def _missing_(cls, value: object):
        """Accept lower/mixed-case labels from clients."""
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None
