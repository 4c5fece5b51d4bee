"""Shared pytest fixtures for the contact service tests."""

import pytest
from fastapi.testclient import TestClient

from src.app import create_app
from src.shared.config import PROJECT_ROOT, Settings
from src.shared.security.csrf import InMemoryTokenStore
from src.shared.security.rate_limit import FixedWindowRateLimiter

from .helpers import FakeClock, RecordingTransport


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        email_user="website@coa.test",
        email_password="app-password",
        company_email="hello@coa.test",
        static_dir=PROJECT_ROOT / "public",
    )


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def token_store(clock):
    return InMemoryTokenStore(clock=clock)


@pytest.fixture
def rate_limiter(clock):
    return FixedWindowRateLimiter(clock=clock)


@pytest.fixture
def app(settings, transport, token_store, rate_limiter):
    return create_app(
        settings=settings,
        transport=transport,
        token_store=token_store,
        rate_limiter=rate_limiter,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def valid_submission():
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-0100",
        "company": "Acme",
        "service": "Consulting",
        "message": "Hello there,\n  we need help.",
    }
