# backend/app/schemas/user.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..models.records import Address
from ..models.user import UserRole


class UserBase(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(min_length=6)
    role: UserRole = UserRole.CUSTOMER


class UserLogin(BaseModel):
    email: EmailStr
    password: str
    role: UserRole


class UserSummary(BaseModel):
    """Public fields of a user nested inside other resources."""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    profile_image: Optional[str] = None

    model_config = {"from_attributes": True}


class UserResponse(UserSummary):
    role: UserRole
    is_verified: bool
    is_blocked: bool
    address: Optional[Address] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse
