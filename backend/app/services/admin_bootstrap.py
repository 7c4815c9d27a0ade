from __future__ import annotations

import os
from sqlalchemy.orm import Session
from sqlalchemy import inspect
from typing import Optional

from ..database import SessionLocal
from ..models import User, UserRole
from ..utils.auth import get_password_hash, normalize_email


def _table_exists(session: Session, table_name: str) -> bool:
    insp = inspect(session.get_bind())
    return table_name in insp.get_table_names()


def ensure_default_admin(session_factory=SessionLocal) -> Optional[User]:
    """Create the first ADMIN user when bootstrap is enabled and none exists.

    Admins cannot self-register, so a fresh deployment sets
    DEFAULT_ADMIN_BOOTSTRAP=1 together with DEFAULT_ADMIN_EMAIL and
    DEFAULT_ADMIN_PASSWORD once, then turns it off again.
    """
    if os.getenv("DEFAULT_ADMIN_BOOTSTRAP", "0") not in ("1", "true", "TRUE", "yes", "on"):
        return None
    email = normalize_email(os.getenv("DEFAULT_ADMIN_EMAIL", "") or "")
    password = os.getenv("DEFAULT_ADMIN_PASSWORD", "") or ""
    if not email or not password:
        raise ValueError("DEFAULT_ADMIN_EMAIL and DEFAULT_ADMIN_PASSWORD are required")

    session: Session = session_factory()
    try:
        if not _table_exists(session, "users"):
            return None
        if session.query(User).filter(User.role == UserRole.ADMIN).count() > 0:
            return None
        if session.query(User).filter(User.email == email).first() is not None:
            raise ValueError(f"{email} already belongs to a non-admin account")

        admin = User(
            name="Admin",
            email=email,
            password=get_password_hash(password),
            role=UserRole.ADMIN,
            is_verified=True,
        )
        session.add(admin)
        session.commit()
        session.refresh(admin)
        return admin
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
