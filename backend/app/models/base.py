from datetime import datetime

from sqlalchemy import Column, DateTime, inspect

from ..database import Base


class BaseModel(Base):
    """Abstract parent of every table: audit timestamps and a readable repr."""

    __abstract__ = True

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        key = inspect(self).identity
        ident = key[0] if key and len(key) == 1 else key
        return f"<{type(self).__name__} {ident}>"
