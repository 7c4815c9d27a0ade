from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .records import PaymentMetadata
from .types import CaseInsensitiveEnum, PydanticJSON


class PaymentStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PaymentProvider(str, enum.Enum):
    STRIPE = "STRIPE"
    PAYPAL = "PAYPAL"
    LOCAL = "LOCAL"

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class Payment(BaseModel):
    __tablename__ = "payments"
    # at most one COMPLETED payment per booking; FAILED attempts are unlimited
    __table_args__ = (
        Index(
            "uq_payments_booking_completed",
            "booking_id",
            unique=True,
            sqlite_where=text("status = 'COMPLETED'"),
            postgresql_where=text("status = 'COMPLETED'"),
        ),
    )

    id                = Column(Integer, primary_key=True, index=True)
    booking_id        = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id       = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    craftsman_id      = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount            = Column(Numeric(10, 2), nullable=False)
    currency          = Column(String(3), nullable=False, default="SAR")
    provider          = Column(Enum(PaymentProvider), nullable=False, default=PaymentProvider.LOCAL)
    transaction_id    = Column(String, unique=True, nullable=False)
    status            = Column(
        CaseInsensitiveEnum(PaymentStatus, name="paymentstatus"),
        nullable=False,
        index=True,
    )
    payment_method_id = Column(String, nullable=False)
    # "metadata" is reserved on declarative classes
    payment_metadata  = Column("metadata", PydanticJSON(PaymentMetadata), nullable=True)

    booking   = relationship("Booking", back_populates="payments")
    customer  = relationship("User", foreign_keys=[customer_id])
    craftsman = relationship("User", foreign_keys=[craftsman_id])
