"""Audit log of ``status`` changes on bookings and payments.

Listeners fire on attribute set, before the flush, so the log line appears
even when the surrounding commit later fails.
"""

import logging

from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from .. import models

logger = logging.getLogger(__name__)

TRACKED_MODELS = (models.Booking, models.Payment)

_registered = False


def _label(value) -> str:
    return getattr(value, "value", str(value))


def _on_status_set(target, value, oldvalue, initiator):  # noqa: ANN001
    # New rows and no-op assignments are not transitions
    if oldvalue in (NO_VALUE, None) or _label(oldvalue) == _label(value):
        return
    logger.info(
        "%s id=%s status %s -> %s",
        type(target).__name__,
        getattr(target, "id", None),
        _label(oldvalue),
        _label(value),
    )


def register_status_listeners() -> None:
    global _registered
    if _registered:
        return
    for model in TRACKED_MODELS:
        event.listen(model.status, "set", _on_status_set, propagate=True)
    _registered = True
