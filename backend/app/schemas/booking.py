from pydantic import BaseModel, Field
from typing import Optional, Annotated
from datetime import datetime
from decimal import Decimal

from ..models.booking_status import BookingStatus
from ..models.records import BookingLocation
from .user import UserSummary  # For nesting customer details
from .craftsman import CraftsmanNested
from .service import ServiceResponse
from .review import ReviewResponse


# Shared properties for Booking
class BookingBase(BaseModel):
    service_type: Optional[str] = None
    description: Optional[str] = None
    scheduled_date: datetime
    location: Optional[BookingLocation] = None


# Properties to receive on item creation (from a customer)
class BookingCreate(BookingBase):
    craftsman_id: int
    service_id: Optional[int] = None
    price: Annotated[Decimal, Field(ge=0)]


# Body of PATCH /bookings/{id}; a negative price is rejected by the service
class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    price: Optional[Decimal] = None


class BookingResponse(BookingBase):
    id: int
    customer_id: int
    craftsman_id: int
    service_id: Optional[int] = None
    status: BookingStatus
    price: Annotated[Decimal, Field()]
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }


class BookingDetail(BookingResponse):
    # Nested details for dashboards
    customer: Optional[UserSummary] = None
    craftsman: Optional[CraftsmanNested] = None
    service: Optional[ServiceResponse] = None
    review: Optional[ReviewResponse] = None


class BookingDeleteResponse(BaseModel):
    message: str
