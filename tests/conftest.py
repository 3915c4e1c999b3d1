"""Pytest configuration and shared fixtures for all tests."""

import sys
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from payment_guard.domain.encryption import generate_master_key  # noqa: E402
from payment_guard.domain.keys import KeyManager  # noqa: E402
from payment_guard.models.payment import PaymentRequest  # noqa: E402

# Mid-afternoon, outside the unusual-hours band
DEFAULT_NOW = datetime(2025, 6, 15, 14, 0, 0)
TODAY = date(2025, 6, 15)


class FakeClock:
    """Controllable clock for velocity and time-of-day checks."""

    def __init__(self, now: datetime = DEFAULT_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def master_key():
    return generate_master_key()


@pytest.fixture
def key_manager(master_key):
    return KeyManager(master_key, key_version="v1")


@pytest.fixture
def valid_card_data():
    """A complete, valid request with a modest amount."""
    return {
        "card_number": "4242424242424242",
        "cvv": "123",
        "expiry_month": 12,
        "expiry_year": 2027,
        "cardholder_name": "Test User",
        "amount": "49.99",
        "currency": "USD",
        "user_id": "user-1",
        "ip": "203.0.113.7",
    }


@pytest.fixture
def valid_request(valid_card_data):
    return PaymentRequest(**valid_card_data)
