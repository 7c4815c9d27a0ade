"""Typed values stored in JSON columns.

These are validated on write and parsed back into the same types on read by
``PydanticJSON`` (see ``types.py``), so callers never handle raw dicts.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class BookingLocation(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)


class PriceRange(BaseModel):
    min: float = Field(default=0, ge=0)
    max: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "PriceRange":
        if self.max and self.max < self.min:
            raise ValueError("max must be greater than or equal to min")
        return self


class DayAvailability(BaseModel):
    available: bool = False
    hours: Optional[str] = None


# weekday name (e.g. "sunday") -> availability
Availability = Dict[str, DayAvailability]

Skills = List[str]

Portfolio = List[HttpUrl]


class PaymentMetadata(BaseModel):
    """Gateway bookkeeping kept alongside a payment row."""

    model_config = ConfigDict(extra="allow")

    processed_at: Optional[datetime] = None
    gateway_response: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    failed_at: Optional[datetime] = None
