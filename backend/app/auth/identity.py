"""Bearer credential issuing and verification.

``read_identity`` never raises: any malformed, expired or forged token yields
``None`` and callers treat that as "unauthenticated".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from app.core.config import settings
from app.models.user import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    subject_id: int
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def create_access_token(
    *,
    subject_id: int,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": str(subject_id),
        "email": email,
        "role": UserRole(role).value,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_identity(token: Optional[str]) -> Optional[Identity]:
    """Decode and verify ``token``; return the caller's identity or ``None``."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired bearer token")
        return None
    except JWTError:
        return None
    if str(payload.get("typ") or "").lower() == "refresh":
        return None
    try:
        return Identity(
            subject_id=int(payload["sub"]),
            email=str(payload["email"]),
            role=UserRole(payload["role"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


__all__ = ["Identity", "create_access_token", "read_identity"]
