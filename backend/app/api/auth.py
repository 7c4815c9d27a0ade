import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud
from ..auth.identity import create_access_token
from ..core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)
from ..database import get_db
from ..models.user import User, UserRole
from ..schemas.user import AuthResponse, UserCreate, UserLogin, UserResponse
from ..utils.auth import verify_and_upgrade

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

SELF_SERVICE_ROLES = {UserRole.CUSTOMER, UserRole.CRAFTSMAN}


def _token_for(user: User) -> str:
    return create_access_token(subject_id=user.id, email=user.email, role=user.role)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    if user_data.role not in SELF_SERVICE_ROLES:
        raise InvalidInputError("This account type cannot be registered", {"role": "invalid"})
    if crud.user.get_user_by_email(db, user_data.email):
        raise ConflictError(
            "That email already has an account. Sign in instead.",
            {"email": "already_registered"},
        )

    db_user = crud.user.create_user(db, user_data)
    logger.info("Registered user id=%s role=%s", db_user.id, db_user.role.value)
    return {
        "message": "Account created successfully",
        "token": _token_for(db_user),
        "user": UserResponse.model_validate(db_user),
    }


@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Exchange email, password and expected role for a bearer token."""
    user = crud.user.get_user_by_email(db, credentials.email)
    if user is None:
        raise NotFoundError("User not found", {"email": "not_found"})
    if user.is_blocked:
        raise ForbiddenError("Account is blocked", {"email": "blocked"})
    if user.role != credentials.role:
        raise ForbiddenError("Incorrect account type", {"role": "mismatch"})
    valid, upgraded_hash = verify_and_upgrade(credentials.password, user.password)
    if not valid:
        raise UnauthenticatedError("Incorrect password", {"password": "invalid"})
    if user.role == UserRole.CRAFTSMAN and (
        user.craftsman_profile is None or not user.craftsman_profile.is_approved
    ):
        raise ForbiddenError("Account is pending review", {"email": "pending_approval"})

    if upgraded_hash:
        user.password = upgraded_hash
        db.commit()
        logger.info("Upgraded password hash for user id=%s", user.id)

    return {
        "message": "Logged in successfully",
        "token": _token_for(user),
        "user": UserResponse.model_validate(user),
    }
