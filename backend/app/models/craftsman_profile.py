# backend/app/models/craftsman_profile.py

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .records import Availability, PriceRange, Portfolio, Skills
from .types import PydanticJSON


class CraftsmanProfile(BaseModel):
    """ORM model representing a craftsman's public profile."""

    __tablename__ = "craftsman_profiles"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        unique=True,
        nullable=False,
        index=True,
    )
    profession    = Column(String, index=True, nullable=False, default="")
    experience    = Column(Integer, nullable=False, default=0)
    description   = Column(Text, nullable=False, default="")
    skills        = Column(PydanticJSON(Skills), nullable=False, default=list)
    price_range   = Column(PydanticJSON(PriceRange), nullable=False, default=dict)
    availability  = Column(PydanticJSON(Availability), nullable=False, default=dict)
    portfolio     = Column(PydanticJSON(Portfolio), nullable=False, default=list)
    rating        = Column(Float, nullable=False, default=0.0, index=True)
    reviews_count = Column(Integer, nullable=False, default=0)
    is_approved   = Column(Boolean, nullable=False, default=False, index=True)

    user = relationship("User", back_populates="craftsman_profile")
    services = relationship(
        "Service",
        back_populates="craftsman",
        cascade="all, delete-orphan",
    )
