"""
Test configuration and fixtures
Based on FastAPI + SQLAlchemy async + pytest best practices
"""

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Import all models BEFORE creating fixtures (critical for create_all to work)
from bookingflow.core.database import Base
from bookingflow.models.event import Event, EventStatus
from bookingflow.booking.gateways import (
    BookingStore,
    DiscountGateway,
    NotificationGateway,
    ParticipantValidationGateway,
    PaymentGateway,
    PricingGateway,
)
from bookingflow.booking.journey import create_journey
from bookingflow.schemas.booking import ParticipantValidationResult
from bookingflow.schemas.checkout import CheckoutSession
from bookingflow.schemas.discount import DiscountCalculation
from bookingflow.schemas.event import EventRead, EventSettings, PricingTier, SectionRead
import bookingflow.models  # noqa: F401


@pytest_asyncio.fixture(scope="function")
async def test_db():
    """In-memory database shared by every connection of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_db) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async_session_maker = async_sessionmaker(
        test_db,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with dependency override"""
    from bookingflow.main import app
    from bookingflow.core.database import get_session

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_event(db_session):
    """Published single-section event stored in the database"""
    event = Event(
        title="Autumn Workshop",
        description="Hands-on workshop",
        start_date=datetime.now(timezone.utc) + timedelta(days=30),
        status=EventStatus.PUBLISHED,
        price=Decimal("25.00"),
        settings={"whitelist_enabled": False, "prevent_duplicates": True},
        organizer_email="organizer@example.com",
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


# In-memory event snapshots

@pytest.fixture
def make_tier():
    def _make(name="General", price="50.00", **kwargs):
        kwargs.setdefault("id", f"tier-{uuid4().hex[:8]}")
        return PricingTier(name=name, price=Decimal(price), **kwargs)
    return _make


@pytest.fixture
def make_section(make_tier):
    def _make(title="Section", available_seats=5, whitelist_enabled=False, pricing=None, **kwargs):
        kwargs.setdefault("id", f"section-{uuid4().hex[:8]}")
        return SectionRead(
            title=title,
            available_seats=available_seats,
            whitelist_enabled=whitelist_enabled,
            pricing=pricing if pricing is not None else [make_tier(name=f"{title} Entry", price="30.00")],
            **kwargs
        )
    return _make


@pytest.fixture
def make_event():
    def _make(whitelist_enabled=False, prevent_duplicates=True, **kwargs):
        kwargs.setdefault("id", f"event-{uuid4().hex[:8]}")
        kwargs.setdefault("title", "Summer Festival")
        kwargs.setdefault("start_date", datetime.now(timezone.utc) + timedelta(days=30))
        kwargs.setdefault("status", EventStatus.PUBLISHED)
        if "price" in kwargs:
            kwargs["price"] = Decimal(str(kwargs["price"]))
        return EventRead(
            settings=EventSettings(
                whitelist_enabled=whitelist_enabled,
                prevent_duplicates=prevent_duplicates,
            ),
            **kwargs
        )
    return _make


# Gateway doubles

@dataclass
class Gateways:
    store: AsyncMock
    pricing: AsyncMock
    discounts: AsyncMock
    participant_validation: AsyncMock
    payment: AsyncMock
    notifications: AsyncMock

    def as_kwargs(self) -> dict:
        return {
            "store": self.store,
            "pricing": self.pricing,
            "discounts": self.discounts,
            "participant_validation": self.participant_validation,
            "payment": self.payment,
            "notifications": self.notifications,
        }


@pytest.fixture
def gateways():
    store = AsyncMock(spec=BookingStore)
    store.create_booking.return_value = "booking-1"
    store.is_subscribed.return_value = False

    pricing = AsyncMock(spec=PricingGateway)
    pricing.fetch_pricing_tiers.return_value = []

    discounts = AsyncMock(spec=DiscountGateway)
    discounts.calculate_discounts.return_value = DiscountCalculation()

    participant_validation = AsyncMock(spec=ParticipantValidationGateway)
    participant_validation.validate_participants.return_value = ParticipantValidationResult(valid=True)

    payment = AsyncMock(spec=PaymentGateway)
    payment.create_checkout_session.return_value = CheckoutSession(
        session_id="cs_test_123",
        url="https://checkout.stripe.com/c/pay/cs_test_123",
        processing_fee=Decimal("1.15"),
    )

    notifications = AsyncMock(spec=NotificationGateway)
    notifications.send.return_value = True

    return Gateways(store, pricing, discounts, participant_validation, payment, notifications)


@pytest.fixture
def make_journey(gateways):
    def _make(event, **kwargs):
        kwargs.setdefault("user_id", "user-1")
        kwargs.setdefault("redirect_delay", 0)
        return create_journey(event, **gateways.as_kwargs(), **kwargs)
    return _make
