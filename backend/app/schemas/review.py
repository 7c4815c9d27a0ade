from pydantic import BaseModel, Field
from typing import Optional, Annotated
from datetime import datetime

from .user import UserSummary


class ReviewBase(BaseModel):
  rating: Annotated[int, Field(ge=1, le=5)]
  comment: Optional[str] = None


class ReviewCreate(ReviewBase):
  """Customer → craftsman review payload (booking-bound)."""
  booking_id: int


class ReviewResponse(ReviewBase):
  id: int
  booking_id: int
  customer_id: int
  craftsman_id: int
  created_at: datetime

  model_config = {"from_attributes": True}


class ReviewDetails(ReviewResponse):
  """Review with the author attached (used for lists)."""
  customer: Optional[UserSummary] = None
