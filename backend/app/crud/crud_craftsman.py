from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from .. import models

SORT_COLUMNS = {
    "rating": models.CraftsmanProfile.rating,
    "experience": models.CraftsmanProfile.experience,
    "reviews": models.CraftsmanProfile.reviews_count,
}

# price lives in the price_range JSON column
SORT_KEYS = {
    "rating": lambda p: p.rating or 0.0,
    "experience": lambda p: p.experience or 0,
    "reviews": lambda p: p.reviews_count or 0,
    "price": lambda p: p.price_range.min if p.price_range else 0.0,
}


@dataclass
class CraftsmanSearch:
    search: Optional[str] = None
    profession: Optional[str] = None
    location: Optional[str] = None
    min_rating: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort_by: str = "rating"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 10


def _matches_location(profile: models.CraftsmanProfile, location: str) -> bool:
    address = profile.user.address
    city = address.city if address else None
    return bool(city) and location.lower() in city.lower()


def _matches_price(profile: models.CraftsmanProfile, params: CraftsmanSearch) -> bool:
    price_range = profile.price_range
    low = price_range.min if price_range else 0.0
    high = price_range.max if price_range else 0.0
    if params.min_price is not None and low < params.min_price:
        return False
    if params.max_price is not None and high > params.max_price:
        return False
    return True


class CRUDCraftsman:
    def get_profile(
        self, db: Session, user_id: int, *, approved_only: bool = False
    ) -> Optional[models.CraftsmanProfile]:
        query = (
            db.query(models.CraftsmanProfile)
            .options(joinedload(models.CraftsmanProfile.user))
            .filter(models.CraftsmanProfile.user_id == user_id)
        )
        if approved_only:
            query = query.join(models.User).filter(
                models.CraftsmanProfile.is_approved.is_(True),
                models.User.is_blocked.is_(False),
            )
        return query.first()

    def search(
        self, db: Session, params: CraftsmanSearch
    ) -> Tuple[List[models.CraftsmanProfile], int]:
        """Return one page of approved, unblocked craftsmen and the total count.

        Column filters, column sorts and paging run in SQL. City and price
        range live in typed JSON columns, so a location or price filter, or a
        price sort, is matched and paged after loading.
        """
        query = (
            db.query(models.CraftsmanProfile)
            .join(models.User, models.User.id == models.CraftsmanProfile.user_id)
            .options(joinedload(models.CraftsmanProfile.user))
            .filter(
                models.CraftsmanProfile.is_approved.is_(True),
                models.User.is_blocked.is_(False),
            )
        )
        if params.search:
            pattern = f"%{params.search.strip()}%"
            query = query.filter(
                or_(
                    models.User.name.ilike(pattern),
                    models.CraftsmanProfile.profession.ilike(pattern),
                    models.CraftsmanProfile.description.ilike(pattern),
                )
            )
        if params.profession:
            query = query.filter(
                models.CraftsmanProfile.profession.ilike(f"%{params.profession.strip()}%")
            )
        if params.min_rating:
            query = query.filter(models.CraftsmanProfile.rating >= params.min_rating)

        offset = (params.page - 1) * params.limit
        descending = params.sort_order != "asc"
        needs_json = (
            params.location
            or params.min_price is not None
            or params.max_price is not None
            or params.sort_by not in SORT_COLUMNS
        )
        if not needs_json:
            total = query.count()
            column = SORT_COLUMNS[params.sort_by]
            tiebreak = models.CraftsmanProfile.user_id
            order = (column.desc(), tiebreak.desc()) if descending else (column.asc(), tiebreak.asc())
            return query.order_by(*order).offset(offset).limit(params.limit).all(), total

        profiles = query.all()
        if params.location:
            profiles = [p for p in profiles if _matches_location(p, params.location)]
        if params.min_price is not None or params.max_price is not None:
            profiles = [p for p in profiles if _matches_price(p, params)]

        key = SORT_KEYS.get(params.sort_by, SORT_KEYS["rating"])
        profiles.sort(key=lambda p: (key(p), p.user_id), reverse=descending)

        return profiles[offset : offset + params.limit], len(profiles)

    def set_approval(
        self, db: Session, profile: models.CraftsmanProfile, is_approved: bool
    ) -> models.CraftsmanProfile:
        profile.is_approved = is_approved
        db.commit()
        db.refresh(profile)
        return profile


craftsman = CRUDCraftsman()
