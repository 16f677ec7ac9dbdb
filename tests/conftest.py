"""Shared test configuration and fixtures.

Each test gets its own SQLite database file (via aiosqlite) under
``tmp_path``, so tests are isolated and several sessions can work against
the same data concurrently. Time is frozen through ``FrozenClock``.
"""

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from staybook.api.deps import get_clock, get_db
from staybook.clock import Clock
from staybook.database import Base
from staybook.main import app
from staybook.models.booking import Booking
from staybook.models.property import Property
from staybook.models.voucher import Voucher
from staybook.services import properties as property_service
from staybook.services import vouchers as voucher_service
from staybook.services.reservations import PropertyLocks, ReservationService

TODAY = date(2024, 6, 1)


class FrozenClock(Clock):
    """Clock stuck at a fixed instant; ``advance`` moves it forward."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> None:
        self._now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Database: one SQLite file per test
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'staybook_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for arranging data and asserting on results."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 1, 9, 0, 0))


@pytest.fixture
def locks() -> PropertyLocks:
    return PropertyLocks()


@pytest_asyncio.fixture
async def make_service(
    session_factory, clock, locks
) -> AsyncGenerator[Callable[..., ReservationService], None]:
    """Build ReservationServices, each on its own session, sharing one lock registry."""
    sessions: list[AsyncSession] = []

    def _make(**kwargs) -> ReservationService:
        session = session_factory()
        sessions.append(session)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("locks", locks)
        return ReservationService(session, **kwargs)

    yield _make
    for session in sessions:
        await session.close()


@pytest_asyncio.fixture
async def client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test DB and frozen clock."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: properties and vouchers
# ---------------------------------------------------------------------------


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def customer_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest_asyncio.fixture
async def make_property(
    session_factory, owner_id
) -> Callable[..., Awaitable[Property]]:
    """Create a property and walk it through the lifecycle up to ``stage``.

    ``stage`` is one of ``submitted``, ``approved`` (contract pending) or
    ``live``. The returned object is detached with every column loaded.
    """

    async def _make(
        stage: str = "live",
        proposed_rate: Decimal | int = 100,
        commission_percentage: Decimal | int = 15,
        max_guests: int = 4,
        **extra,
    ) -> Property:
        async with session_factory() as session:
            prop = await property_service.submit_property(
                session,
                owner_id=owner_id,
                title=extra.pop("title", "Seaside Cottage"),
                proposed_rate=proposed_rate,
                max_guests=max_guests,
                **extra,
            )
            if stage in ("approved", "live"):
                await property_service.approve_property(session, prop.id, commission_percentage=commission_percentage)
            if stage == "live":
                await property_service.accept_contract(session, prop.id)
            await session.commit()
            return prop

    return _make


@pytest_asyncio.fixture
async def live_property(make_property) -> Property:
    """Live property: base 100 + 15% commission = 115/night, up to 4 guests."""
    return await make_property()


@pytest_asyncio.fixture
async def make_voucher(
    session_factory, owner_id
) -> Callable[..., Awaitable[Voucher]]:
    async def _make(property_id: uuid.UUID, **overrides) -> Voucher:
        data = {
            "owner_id": owner_id,
            "property_id": property_id,
            "discount_type": "percentage",
            "discount_value": 20,
            "expiration_date": TODAY + timedelta(days=30),
            "usage_limit": 1,
        }
        data.update(overrides)
        async with session_factory() as session:
            voucher = await voucher_service.create_voucher(session, today=TODAY, **data)
            await session.commit()
            return voucher

    return _make


@pytest_asyncio.fixture
async def make_booking(session_factory, customer_id) -> Callable[..., Awaitable[Booking]]:
    """Insert a booking row directly, bypassing the orchestrator."""

    async def _make(property_id: uuid.UUID, check_in: date, check_out: date, status: str = "confirmed") -> Booking:
        nights = (check_out - check_in).days
        async with session_factory() as session:
            booking = Booking(
                property_id=property_id,
                customer_id=customer_id,
                check_in=check_in,
                check_out=check_out,
                guests=1,
                nightly_rate=Decimal("115"),
                subtotal=Decimal("115") * nights,
                service_fee=Decimal("0"),
                taxes=Decimal("0"),
                total_amount=Decimal("115") * nights,
                status=status,
                booked_at=datetime(2024, 5, 1),
            )
            session.add(booking)
            await session.commit()
            return booking

    return _make
