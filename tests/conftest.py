"""
Pytest configuration and fixtures.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bistro.database import get_db
from bistro.dependencies import get_mailer, get_now, get_rate_limiter
from bistro.main import app
from bistro.models.generated import Base, MenuItems, ReservationSettings, Reservations
from bistro.services.mailer import Mailer
from bistro.services.rate_limit import InMemoryRateLimitStore, RateLimiter


# Monday 2026-10-19, 09:00
NOW = datetime(2026, 10, 19, 9, 0)


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingMailer(Mailer):
    """Mailer that records messages instead of calling Resend."""

    def __init__(self):
        super().__init__(api_key=None)
        self.sent = []

    def send(self, to, subject, text):
        self.sent.append({"to": to, "subject": subject, "text": text})
        return True


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory database per test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def limiter():
    return RateLimiter(InMemoryRateLimitStore())


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def now():
    return NOW


@pytest.fixture(scope="function")
def client(db_session, limiter, mailer, now):
    """Test client with database, clock, limiter and mailer overridden."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: now
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_mailer] = lambda: mailer

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def seed_menu(db_session):
    items = [
        MenuItems(id="pho-bo", name="Pho Bo", price=12.50, category="mains", available=1),
        MenuItems(id="bun-cha", name="Bun Cha", price=13.90, category="mains", available=1),
        MenuItems(id="spring-rolls", name="Spring Rolls", price=6.50, category="starters", available=1),
        MenuItems(id="seasonal-soup", name="Seasonal Soup", price=8.00, category="starters", available=0),
    ]
    db_session.add_all(items)
    db_session.commit()
    return {item.id: item for item in items}


@pytest.fixture
def seed_settings(db_session):
    """Settings row with explicit values (matching the defaults)."""
    row = ReservationSettings(
        reservation_start_time="11:00:00",
        reservation_end_time="21:00:00",
        slot_duration_minutes=30,
        max_tables=15,
        max_party_size=20,
        closed_days="[]",
        min_advance_hours=2,
        booking_window_days=30,
        auto_confirm=0,
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def make_reservation(db_session):
    """Factory inserting a reservation row directly."""
    def _make(date="2026-10-19", time="19:00", party_size=4, status="confirmed", **kwargs):
        reservation = Reservations(
            customer_name=kwargs.pop("customer_name", "Jane Doe"),
            customer_email=kwargs.pop("customer_email", "jane@example.com"),
            customer_phone=kwargs.pop("customer_phone", "+4915112345678"),
            reservation_date=date,
            reservation_time=time,
            party_size=party_size,
            status=status,
            **kwargs,
        )
        db_session.add(reservation)
        db_session.commit()
        db_session.refresh(reservation)
        return reservation

    return _make


@pytest.fixture
def reservation_payload():
    def _payload(**overrides) -> dict:
        payload = {
            "customer_name": "Jane Doe",
            "customer_email": "jane@example.com",
            "customer_phone": "+4915112345678",
            "reservation_date": "2026-10-20",
            "reservation_time": "19:00",
            "party_size": 4,
            "special_requests": "Window seat",
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def order_payload():
    def _payload(**overrides) -> dict:
        payload = {
            "customer_name": "Jane Doe",
            "customer_phone": "+4915112345678",
            "customer_email": "jane@example.com",
            "order_type": "pickup",
            "items": [
                {"id": "pho-bo", "name": "Pho Bo", "quantity": 2, "price": 0.01},
            ],
            "subtotal": 0.02,
            "tax": 0.0,
            "total": 0.02,
        }
        payload.update(overrides)
        return payload

    return _payload
