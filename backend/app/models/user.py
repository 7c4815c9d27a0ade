# backend/app/models/user.py

from sqlalchemy import Boolean, Column, Integer, String, Enum
from sqlalchemy.orm import relationship
from .base import BaseModel
from .records import Address
from .types import PydanticJSON
import enum


class UserRole(str, enum.Enum):
    """Enumeration of all supported user roles."""

    CUSTOMER = "CUSTOMER"
    CRAFTSMAN = "CRAFTSMAN"
    ADMIN = "ADMIN"

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class User(BaseModel):
    __tablename__ = "users"

    id            = Column(Integer, primary_key=True, index=True)
    name          = Column(String, nullable=False)
    email         = Column(String, unique=True, index=True, nullable=False)
    password      = Column(String, nullable=False)
    phone         = Column(String, nullable=True)
    role          = Column(Enum(UserRole), nullable=False, index=True)
    is_verified   = Column(Boolean, default=False, nullable=False)
    is_blocked    = Column(Boolean, default=False, nullable=False)
    profile_image = Column(String, nullable=True)
    address       = Column(PydanticJSON(Address), nullable=True)

    # ↔–↔ Craftsmen get exactly one profile here:
    craftsman_profile = relationship(
        "CraftsmanProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    bookings_as_customer = relationship(
        "Booking",
        foreign_keys="Booking.customer_id",
        back_populates="customer",
    )
    bookings_as_craftsman = relationship(
        "Booking",
        foreign_keys="Booking.craftsman_id",
        back_populates="craftsman",
    )
