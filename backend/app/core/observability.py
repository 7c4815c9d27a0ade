"""Logging setup.

Environment knobs:

- LOG_LEVEL (default: INFO): root logger level
- LOG_FORMAT (default: json): ``json`` for one JSON object per line,
  ``plain`` for human-readable local output
- DISABLE_ACCESS_LOG: silence uvicorn.access (defaults to on when the level
  is WARNING or higher)
- SQL_ECHO: log every SQL statement through ``sqlalchemy.engine``
"""

from __future__ import annotations

import logging
import os

from pythonjsonlogger import jsonlogger

from .config import settings

LOG_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _parse_bool(value: str | bool | None, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _formatter() -> logging.Formatter:
    if os.getenv("LOG_FORMAT", "json").strip().lower() == "plain":
        return logging.Formatter(LOG_FIELDS)
    return jsonlogger.JsonFormatter(LOG_FIELDS, rename_fields={"levelname": "level"})


def setup_logging() -> None:
    """Install one stream handler on the root logger; safe to call twice."""
    handler = logging.StreamHandler()
    handler.setFormatter(_formatter())
    root = logging.getLogger()
    root.handlers = [handler]
    level_name = (os.getenv("LOG_LEVEL") or settings.LOG_LEVEL or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root.setLevel(level)

    access_logger = logging.getLogger("uvicorn.access")
    if _parse_bool(os.getenv("DISABLE_ACCESS_LOG"), level >= logging.WARNING):
        access_logger.handlers = []
        access_logger.propagate = False
        access_logger.disabled = True
    else:
        access_logger.setLevel(level)

    sql_level = logging.INFO if _parse_bool(os.getenv("SQL_ECHO"), False) else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)
