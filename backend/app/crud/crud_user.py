from sqlalchemy.orm import Session
from typing import Optional

from .. import models, schemas
from ..utils.auth import get_password_hash, normalize_email


class CRUDUser:
    def get_user(self, db: Session, user_id: int) -> Optional[models.User]:
        return db.query(models.User).filter(models.User.id == user_id).first()

    def get_user_by_email(self, db: Session, email: str) -> Optional[models.User]:
        return (
            db.query(models.User)
            .filter(models.User.email == normalize_email(email))
            .first()
        )

    def create_user(self, db: Session, user: schemas.UserCreate) -> models.User:
        """Create a user; craftsmen also get an unapproved profile."""
        db_user = models.User(
            name=user.name.strip(),
            email=normalize_email(user.email),
            password=get_password_hash(user.password),
            phone=user.phone,
            role=user.role,
        )
        if user.role == models.UserRole.CRAFTSMAN:
            db_user.craftsman_profile = models.CraftsmanProfile(is_approved=False)
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user


user = CRUDUser()  # Create an instance for easy import
