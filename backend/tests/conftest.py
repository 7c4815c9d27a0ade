import os
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

# Settings are read at import time; configure them before importing the app
os.environ["PYTEST_RUN"] = "1"
os.environ["REALTIME_BACKEND"] = "memory"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PAYMENT_FAILURE_RATE"] = "0"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.dependencies import get_db, get_realtime_channel  # noqa: E402
from app.auth.identity import Identity, create_access_token  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Booking,
    BookingStatus,
    CraftsmanProfile,
    User,
    UserRole,
)
from app.models.base import BaseModel  # noqa: E402
from app.utils.auth import get_password_hash  # noqa: E402


class RecordingChannel:
    """Realtime channel that remembers every publish."""

    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    async def publish(self, user_id, payload):
        if self.fail:
            raise ConnectionError("bus down")
        self.events.append((user_id, payload))

    def for_user(self, user_id):
        return [payload for uid, payload in self.events if uid == user_id]


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    yield Session
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def client(session_factory, channel):
    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_realtime_channel] = lambda: channel
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


_counter = {"n": 0}


def make_user(
    db,
    role=UserRole.CUSTOMER,
    *,
    email=None,
    name=None,
    password="secret123",
    approved=True,
    blocked=False,
    **profile_fields,
):
    _counter["n"] += 1
    n = _counter["n"]
    user = User(
        name=name or f"{role.value.title()} {n}",
        email=email or f"{role.value.lower()}{n}@example.com",
        password=get_password_hash(password),
        phone="0500000000",
        role=role,
        is_blocked=blocked,
    )
    if role == UserRole.CRAFTSMAN:
        profile_fields.setdefault("profession", "Plumber")
        user.craftsman_profile = CraftsmanProfile(is_approved=approved, **profile_fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_booking(db, customer, craftsman, status=BookingStatus.PENDING, price=200):
    booking = Booking(
        customer_id=customer.id,
        craftsman_id=craftsman.id,
        service_type="Pipe repair",
        scheduled_date=datetime.utcnow() + timedelta(days=3),
        status=status,
        price=Decimal(str(price)),
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def identity_for(user):
    return Identity(subject_id=user.id, email=user.email, role=user.role)


def auth_headers(user):
    token = create_access_token(subject_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def parties(db):
    """A customer, an approved craftsman, an outsider and an admin."""
    return {
        "customer": make_user(db, UserRole.CUSTOMER),
        "craftsman": make_user(db, UserRole.CRAFTSMAN),
        "outsider": make_user(db, UserRole.CUSTOMER),
        "admin": make_user(db, UserRole.ADMIN),
    }
