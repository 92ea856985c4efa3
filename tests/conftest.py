"""Shared pytest fixtures for the car-rental checkout test suite."""
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api.main import app
from core.audit_logger import AuditLogger
from core.booking_store import BookingStore
from core.pricing import PricingConfig
from core.sessions import SessionRegistry
from core.state import Car, DriverInfo, Location, PaymentData
from db.database import get_db
from db.models import Base
from providers.factory import get_booking_gateway
from providers.mock.booking_gateway import MockBookingGateway

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# ── Domain fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def airport():
    return Location(id="loc-lax", name="Los Angeles International", code="LAX", type="airport")


@pytest.fixture
def downtown():
    return Location(id="loc-dtla", name="Downtown LA", code="DTLA", type="city")


@pytest.fixture
def car():
    return Car(id="CAR-TEST", name="Test Compact", price_per_day=Decimal("50"), category="compact")


@pytest.fixture
def driver():
    return DriverInfo(
        first_name="Alex",
        last_name="Rivera",
        email="alex@example.com",
        phone="5551234567",
        date_of_birth="1990-04-12",
        license_number="D1234567",
        license_country="US",
        license_expiry="2030-01-01",
    )


@pytest.fixture
def payment():
    return PaymentData(
        card_number="4242 4242 4242 4242",
        expiry="12/29",
        cvv="123",
        cardholder_name="Alex Rivera",
        billing_address="100 Main Street",
        city="Los Angeles",
        state="CA",
        zip_code="90012",
        country="US",
    )


@pytest.fixture
def pricing_config():
    """Scenario pricing: 8% tax, $25 airport surcharge, young-driver fee off."""
    return PricingConfig(tax_rate=Decimal("0.08"), airport_fee=Decimal("25"))


@pytest.fixture
def store(pricing_config):
    return BookingStore(pricing_config=pricing_config, timeout_seconds=1.0)


@pytest.fixture
def ready_store(store, car, airport, driver, payment):
    """A store whose search is valid and whose confirm control is enabled."""
    store.select_car(car)
    store.set_pickup_location(airport)
    store.set_pickup_date(date(2025, 3, 1))
    store.set_return_date(date(2025, 3, 4))
    store.set_primary_driver(driver)
    store.set_payment_data(payment)
    return store


# ── Database fixtures ──────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(TEST_DB_URL, echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def audit_logger(db):
    return AuditLogger(db)


# ── API test client ────────────────────────────────────────────────────────────

@pytest.fixture
def gateway():
    return MockBookingGateway()


@pytest_asyncio.fixture
async def api_client(engine, gateway):
    """AsyncClient wired to FastAPI with an in-memory DB and a shared mock gateway."""
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_gateway] = lambda: gateway
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()
    SessionRegistry.clear()
