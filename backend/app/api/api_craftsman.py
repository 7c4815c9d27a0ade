import logging
import math
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..auth.identity import Identity
from ..core.errors import NotFoundError
from ..crud import CraftsmanSearch
from ..models.user import UserRole
from .dependencies import get_db, require_role

logger = logging.getLogger(__name__)

router = APIRouter(tags=["craftsmen"])


@router.get("/", response_model=schemas.CraftsmanListResponse)
def search_craftsmen(
    search: Optional[str] = Query(default=None),
    profession: Optional[str] = Query(default=None),
    location: Optional[str] = Query(default=None),
    min_rating: Optional[float] = Query(default=None, ge=0, le=5),
    min_price: Optional[float] = Query(default=None, ge=0),
    max_price: Optional[float] = Query(default=None, ge=0),
    sort_by: Literal["rating", "experience", "reviews", "price"] = Query(default="rating"),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Public directory of approved craftsmen with filters and pagination."""
    params = CraftsmanSearch(
        search=search,
        profession=profession,
        location=location,
        min_rating=min_rating,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    profiles, total = crud.craftsman.search(db, params)
    return {
        "craftsmen": [schemas.CraftsmanResponse.from_profile(p) for p in profiles],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.get("/{user_id}", response_model=schemas.CraftsmanResponse)
def read_craftsman(user_id: int, db: Session = Depends(get_db)):
    profile = crud.craftsman.get_profile(db, user_id, approved_only=True)
    if profile is None:
        raise NotFoundError("Craftsman not found", {"user_id": "not_found"})
    return schemas.CraftsmanResponse.from_profile(profile)


@router.patch("/{user_id}/approval", response_model=schemas.CraftsmanResponse)
def set_craftsman_approval(
    user_id: int,
    approval: schemas.CraftsmanApprovalUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_role(UserRole.ADMIN)),
):
    profile = crud.craftsman.get_profile(db, user_id)
    if profile is None:
        raise NotFoundError("Craftsman not found", {"user_id": "not_found"})
    profile = crud.craftsman.set_approval(db, profile, approval.is_approved)
    logger.info(
        "Craftsman %s approval set to %s by admin %s",
        user_id,
        approval.is_approved,
        identity.subject_id,
    )
    return schemas.CraftsmanResponse.from_profile(profile)
