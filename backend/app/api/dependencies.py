from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..auth.identity import Identity, read_identity
from ..core.errors import ForbiddenError, UnauthenticatedError
from ..database import get_db
from ..models.user import UserRole
from ..notifications.dispatcher import NotificationDispatcher
from ..realtime.registry import RealtimeChannel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_current_identity(token: Optional[str] = Depends(oauth2_scheme)) -> Identity:
    identity = read_identity(token)
    if identity is None:
        raise UnauthenticatedError()
    return identity


def require_role(*roles: UserRole) -> Callable[..., Identity]:
    """Dependency factory admitting only the listed roles (403 otherwise)."""
    allowed = frozenset(roles)

    def _check(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise ForbiddenError("Not authorized", {"role": "forbidden"})
        return identity

    return _check


def get_realtime_channel(request: Request) -> RealtimeChannel:
    return request.app.state.realtime_channel


def get_dispatcher(
    db: Session = Depends(get_db),
    channel: RealtimeChannel = Depends(get_realtime_channel),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, channel)


__all__ = [
    "get_db",
    "get_current_identity",
    "require_role",
    "get_realtime_channel",
    "get_dispatcher",
]
