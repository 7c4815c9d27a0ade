from sqlalchemy import CheckConstraint, Column, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from .base import BaseModel

class Review(BaseModel):
    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),)

    id = Column(Integer, primary_key=True, index=True)
    booking_id   = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True)
    customer_id  = Column(Integer, ForeignKey("users.id"), nullable=False)
    craftsman_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    rating       = Column(Integer, nullable=False)
    comment      = Column(Text, nullable=True)

    # Each Review is attached to exactly one Booking
    booking = relationship("Booking", back_populates="review")
    customer = relationship("User", foreign_keys=[customer_id])
