from typing import Optional
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel


# Shared properties
class ServiceBase(BaseModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    base_price: Decimal = Decimal("0")


# Properties to return to client
class ServiceResponse(ServiceBase):
    id: int
    craftsman_id: int  # user_id of the craftsman
    created_at: datetime

    model_config = {"from_attributes": True}
