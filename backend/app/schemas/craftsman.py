from typing import List, Optional

from pydantic import BaseModel, Field, HttpUrl

from ..models.records import Address, Availability, PriceRange


class CraftsmanProfileSummary(BaseModel):
    profession: str
    experience: int
    rating: float
    reviews_count: int

    model_config = {"from_attributes": True}


class CraftsmanNested(BaseModel):
    """Craftsman user with a short profile, as embedded in bookings."""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    craftsman_profile: Optional[CraftsmanProfileSummary] = None

    model_config = {"from_attributes": True}


class CraftsmanResponse(BaseModel):
    user_id: int
    name: str
    email: str
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    address: Optional[Address] = None
    profession: str
    experience: int
    description: str
    skills: List[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    availability: Availability = Field(default_factory=dict)
    portfolio: List[HttpUrl] = Field(default_factory=list)
    rating: float
    reviews_count: int
    is_approved: bool

    @classmethod
    def from_profile(cls, profile) -> "CraftsmanResponse":
        user = profile.user
        return cls(
            user_id=profile.user_id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            profile_image=user.profile_image,
            address=user.address,
            profession=profile.profession,
            experience=profile.experience,
            description=profile.description,
            skills=profile.skills or [],
            price_range=profile.price_range or PriceRange(),
            availability=profile.availability or {},
            portfolio=profile.portfolio or [],
            rating=profile.rating,
            reviews_count=profile.reviews_count,
            is_approved=profile.is_approved,
        )


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class CraftsmanListResponse(BaseModel):
    craftsmen: List[CraftsmanResponse]
    pagination: Pagination


class CraftsmanApprovalUpdate(BaseModel):
    is_approved: bool
