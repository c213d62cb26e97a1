"""Shared pytest fixtures for the TempCompare test suite.

Storage tests run against an in-memory SQLite database (aiosqlite) built from
the ORM metadata. The upstream provider is replaced by ``FakeProvider`` and
time is pinned with ``FrozenClock``, so no network or Postgres is needed.
"""

import os

# Must be set before tempcompare.config is first imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("INTER_CITY_DELAY_SECONDS", "0")

from datetime import date, datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import tempcompare.models  # noqa: E402,F401
from tempcompare.clock import FrozenClock  # noqa: E402
from tempcompare.config import get_settings  # noqa: E402
from tempcompare.db.base import Base  # noqa: E402
from tempcompare.db.session import build_sessionmaker, get_db  # noqa: E402
from tempcompare.dependencies import get_clock, get_pipeline  # noqa: E402
from tempcompare.main import app  # noqa: E402
from tempcompare.services.ingestion import IngestionPipeline  # noqa: E402
from tempcompare.services.locking import IngestionLock  # noqa: E402
from tempcompare.services.provider import HourlyReading  # noqa: E402

LOCAL_TZ = timezone(timedelta(hours=1))

# 2026-10-17 14:30 in the fixed +01:00 offset
NOW = datetime(2026, 10, 17, 14, 30, tzinfo=LOCAL_TZ)
TODAY = NOW.date()


class FakeProvider:
    """Stands in for OpenMeteoClient: returns canned readings or raises per city."""

    def __init__(self) -> None:
        self.readings: dict[str, list[HourlyReading]] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []

    async def fetch_hourly(self, city) -> list[HourlyReading]:
        self.calls.append(city.name)
        if city.name in self.errors:
            raise self.errors[city.name]
        return list(self.readings.get(city.name, []))


def day_readings(day: date, temps: dict[int, float]) -> list[HourlyReading]:
    return [HourlyReading(day, hour, temp) for hour, temp in temps.items()]


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def pipeline(settings, session_factory, provider, clock, engine) -> IngestionPipeline:
    return IngestionPipeline(
        settings=settings,
        session_factory=session_factory,
        client=provider,
        clock=clock,
        lock=IngestionLock(engine),
    )


@pytest.fixture
def make_readings():
    """Factory: ``make_readings(day, {hour: temp, ...})`` → list[HourlyReading]."""
    return day_readings


@pytest.fixture
async def client(session_factory, clock, pipeline) -> AsyncClient:
    """Async test client wired to the SQLite database, frozen clock and fake provider."""

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
