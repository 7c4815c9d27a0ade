# backend/app/models/service.py
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Text
from sqlalchemy.orm import relationship
from .base import BaseModel


class Service(BaseModel):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    craftsman_id = Column(
        Integer,
        ForeignKey("craftsman_profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    base_price = Column(Numeric(10, 2), nullable=False, default=0)

    craftsman = relationship("CraftsmanProfile", back_populates="services")
    bookings = relationship("Booking", back_populates="service")
