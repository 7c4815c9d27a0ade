# backend/app/models/booking.py

from sqlalchemy import CheckConstraint, Column, Integer, DateTime, Numeric, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingStatus
from .records import BookingLocation
from .types import CaseInsensitiveEnum, PydanticJSON


class Booking(BaseModel):
    __tablename__ = "bookings"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_bookings_price_non_negative"),)

    id             = Column(Integer, primary_key=True, index=True)
    customer_id    = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    craftsman_id   = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id     = Column(Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    service_type   = Column(String, nullable=True)
    description    = Column(Text, nullable=True)
    scheduled_date = Column(DateTime, nullable=False, index=True)
    status         = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    price          = Column(Numeric(10, 2), nullable=False)
    location       = Column(PydanticJSON(BookingLocation), nullable=True)
    # Optimistic concurrency token; bumped by the ORM on every UPDATE.
    version        = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    customer  = relationship("User", foreign_keys=[customer_id], back_populates="bookings_as_customer")
    craftsman = relationship("User", foreign_keys=[craftsman_id], back_populates="bookings_as_craftsman")
    service   = relationship("Service", back_populates="bookings")
    review    = relationship(
        "Review",
        back_populates="booking",
        uselist=False,
        cascade="all, delete-orphan",
    )
    payments  = relationship(
        "Payment",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="Payment.created_at",
    )
