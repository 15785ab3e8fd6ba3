import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests-only")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import asyncio
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.deps import get_carrier_repository
from app.core.config import settings
from app.core.enums import UserRole
from app.core.security import create_access_token
from app.models.base import Base
from app.models.carrier import Carrier  # noqa: F401  registers the table
from app.schemas.carrier import CarrierOut
from app.schemas.rate import LineItem, RateRequest
from app.services.carriers import InMemoryCarrierRepository
from app.services.rates import QuoteOptions


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def memory_repository():
    return InMemoryCarrierRepository()


@pytest.fixture
def use_repository():
    """Route the app's carrier dependency to the given repository for one test."""
    def _use(repository):
        app.dependency_overrides[get_carrier_repository] = lambda: repository
        return repository

    yield _use
    app.dependency_overrides.pop(get_carrier_repository, None)


@pytest.fixture
async def test_client(memory_repository, use_repository):
    use_repository(memory_repository)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_token():
    return create_access_token("admin_1", UserRole.ADMIN.value)


@pytest.fixture
def viewer_token():
    return create_access_token("viewer_1", UserRole.VIEWER.value)


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def default_carriers():
    return [CarrierOut(name="DPD", price=1000), CarrierOut(name="Post", price=1200)]


@pytest.fixture
def quote_options():
    return QuoteOptions()


@pytest.fixture
def rate_request_factory():
    def _make(*weights, currency=None):
        """weights are (grams, quantity) pairs"""
        return RateRequest(
            items=[LineItem(grams=grams, quantity=quantity) for grams, quantity in weights],
            currency=currency,
        )

    return _make


@pytest.fixture
def shopify_rate_payload():
    return {
        "rate": {
            "origin": {"country": "DE", "postal_code": "10115", "city": "Berlin"},
            "destination": {"country": "DE", "postal_code": "80331", "city": "Munich"},
            "items": [
                {"name": "Dumbbell", "sku": "DB-5", "quantity": 2, "grams": 5000, "price": 2999,
                 "vendor": "Gym", "requires_shipping": True, "taxable": True, "fulfillment_service": "manual"},
                {"name": "Bench", "sku": "BN-1", "quantity": 1, "grams": 20000, "price": 14999,
                 "vendor": "Gym", "requires_shipping": True, "taxable": True, "fulfillment_service": "manual"},
            ],
            "currency": "EUR",
            "locale": "de",
        }
    }


@pytest.fixture
def app_settings():
    """Return application settings"""
    return settings


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to rate computation"
    )
    config.addinivalue_line(
        "markers", "carriers: marks tests related to carrier management"
    )
    config.addinivalue_line(
        "markers", "registration: marks tests related to Carrier Service registration"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to handle asyncio tests
    """
    for item in items:
        if asyncio.iscoroutinefunction(item.function):
            item.add_marker(pytest.mark.asyncio)
