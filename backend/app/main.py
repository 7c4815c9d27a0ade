# backend/app/main.py

import logging
import os
import re
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as SA_TimeoutError

from . import models  # noqa: F401  registers every table on Base.metadata

# Routers under app/api/
from .api import (
    api_booking,
    api_craftsman,
    api_notification,
    api_payment,
    api_review,
    api_ws,
    auth,
)
from .core.config import settings
from .core.errors import DomainError
from .core.observability import setup_logging
from .database import Base, SessionLocal, engine
from .middleware.security_headers import SecurityHeadersMiddleware
from .realtime.bus import RedisChannel, build_channel
from .realtime.registry import ConnectionRegistry
from .services.admin_bootstrap import ensure_default_admin
from .utils.errors import error_detail
from .utils.status_logger import register_status_listeners

# Configure logging before creating any loggers
setup_logging()
logger = logging.getLogger(__name__)

api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

# Register SQLAlchemy listeners that log status transitions
register_status_listeners()

# ─── Ensure database schema exists (Alembic owns upgrades) ─────────────────
_bootstrap_started_at = datetime.utcnow()
if os.getenv("SKIP_DB_BOOTSTRAP", "0").strip().lower() not in {"1", "true", "yes"}:
    Base.metadata.create_all(bind=engine)
    try:
        ensure_default_admin()
    except (ValueError, SQLAlchemyError) as _exc:
        logger.warning("Default admin bootstrap skipped: %s", _exc)
logger.info(
    "startup.bootstrap.done dialect=%s elapsed_ms=%.1f",
    getattr(engine.dialect, "name", "unknown"),
    (datetime.utcnow() - _bootstrap_started_at).total_seconds() * 1000.0,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    channel = app.state.realtime_channel
    if isinstance(channel, RedisChannel):
        await channel.start()
    try:
        yield
    finally:
        if isinstance(channel, RedisChannel):
            logger.info("Closing realtime bus")
            await channel.close()


app = FastAPI(
    title="Craftsman Booking API",
    version="1.0.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# One registry per application; endpoints reach it through app.state.
app.state.realtime_registry = ConnectionRegistry()
app.state.realtime_channel = build_channel(
    app.state.realtime_registry,
    backend=settings.REALTIME_BACKEND,
    redis_url=settings.REDIS_URL,
    prefix=settings.REALTIME_CHANNEL_PREFIX,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    # Browsers reject credentials with a wildcard origin
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)
app.add_middleware(SecurityHeadersMiddleware)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Turn unhandled errors into JSON responses and log them."""
    try:
        return await call_next(request)
    except SA_TimeoutError as exc:  # DB pool timeout -> 503 to reduce retry storms
        logger.error("DB timeout at %s: %s", request.url.path, str(exc))
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": error_detail("Database busy, please retry")},
        )
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": error_detail("Internal Server Error")},
        )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.warning(
        "%s at %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.message,
    )
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"detail": error_detail(exc.message, exc.field_errors)},
        headers=exc.headers,
    )


_BOOKING_ITEM_PATH = re.compile(rf"^{re.escape(api_prefix)}/bookings/\d+/?$")


def _is_booking_status_error(request: Request, errors: list) -> bool:
    if request.method != "PATCH" or not _BOOKING_ITEM_PATH.match(request.url.path):
        return False
    for err in errors:
        loc = tuple(err.get("loc") or ())
        if loc in {("body",), ("body", "status")}:
            return True
    return False


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors with details and log them for debugging.

    A missing or unknown ``status`` on a booking update is a plain bad
    request rather than a schema error.
    """
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)

    if _is_booking_status_error(request, errors):
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": error_detail(
                    "A valid status is required", {"status": "required"}
                )
            },
        )

    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )


@app.get("/healthz", tags=["health"])
def healthz():
    """Liveness plus a cheap database ping."""
    db_state = "ok"
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check DB ping failed: %s", exc)
        db_state = "error"
    return {"status": "ok", "db": db_state}


# ─── AUTH ROUTES (no version prefix) ────────────────────────────────────────────────
# Clients will POST to /auth/register and /auth/login
app.include_router(auth.router, prefix="/auth", tags=["auth"])

# ─── VERSIONED API ─────────────────────────────────────────────────────────────────
app.include_router(api_craftsman.router, prefix=f"{api_prefix}/craftsmen", tags=["craftsmen"])
app.include_router(api_booking.router, prefix=f"{api_prefix}/bookings", tags=["bookings"])
app.include_router(api_payment.router, prefix=f"{api_prefix}/payments", tags=["payments"])
app.include_router(api_review.router, prefix=f"{api_prefix}/reviews", tags=["reviews"])
app.include_router(
    api_notification.router,
    prefix=f"{api_prefix}/notifications",
    tags=["notifications"],
)

# ─── REALTIME ──────────────────────────────────────────────────────────────────────
app.include_router(api_ws.router)


# ─── A simple root check ─────────────────────────────────────────────────────────────
@app.get("/")
async def root():
    return {"message": "Welcome to the Craftsman Booking API"}
