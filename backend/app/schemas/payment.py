from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ..core.config import settings
from ..models.payment import PaymentProvider, PaymentStatus
from ..models.records import PaymentMetadata


class PaymentCreate(BaseModel):
    booking_id: int
    # Positivity is checked by the endpoint so it can answer 400
    amount: Decimal
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, min_length=3, max_length=3)
    provider: PaymentProvider = PaymentProvider.LOCAL
    payment_method_id: str = Field(min_length=1)


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    customer_id: int
    craftsman_id: int
    amount: Decimal
    currency: str
    provider: PaymentProvider
    transaction_id: str
    status: PaymentStatus
    payment_method_id: str
    payment_metadata: Optional[PaymentMetadata] = Field(
        default=None, serialization_alias="metadata"
    )
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentResult(BaseModel):
    message: str
    payment: PaymentResponse
