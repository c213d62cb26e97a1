"""Tests for liveness, OpenAPI docs and configuration defaults."""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from pydantic import ValidationError

from tempcompare.clock import FixedOffsetClock, FrozenClock
from tempcompare.config import Settings
from tempcompare.main import app, lifespan
from tempcompare.main import settings as app_settings
from tempcompare.ratelimit import RateLimiter


# ── GET /health ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health_returns_200(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ── GET /docs and /redoc (OpenAPI UI) ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_openapi_docs_accessible(client: AsyncClient):
    response = await client.get("/docs")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_redoc_accessible(client: AsyncClient):
    response = await client.get("/redoc")
    assert response.status_code == 200


# ── Startup ingestion ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_startup_dispatches_ingestion(monkeypatch):
    task = MagicMock()
    monkeypatch.setattr(app_settings, "ingest_on_startup", True)
    monkeypatch.setattr("tempcompare.workers.tasks.ingest_cycle", task)

    async with lifespan(app):
        task.delay.assert_called_once_with()


@pytest.mark.asyncio
async def test_startup_survives_unreachable_broker(monkeypatch):
    task = MagicMock()
    task.delay.side_effect = ConnectionError("redis down")
    monkeypatch.setattr(app_settings, "ingest_on_startup", True)
    monkeypatch.setattr("tempcompare.workers.tasks.ingest_cycle", task)

    async with lifespan(app):
        pass
    task.delay.assert_called_once_with()


# ── Config validation ──────────────────────────────────────────────────────────

def test_default_cities():
    s = Settings()
    assert s.city_names() == [
        "Prague", "Brno", "Plzen", "Ostrava", "Berlin", "Munich", "Budapest", "Debrecen",
    ]
    assert s.find_city("Berlin").lat == pytest.approx(52.52)
    assert s.find_city("Atlantis") is None


def test_default_windows():
    s = Settings()
    assert s.past_days == 3
    assert s.forecast_days == 3
    assert s.retention_days == 14
    assert s.fetch_schedule_hours == 6
    assert s.local_utc_offset_hours == 1
    assert s.upstream_timezone == "Etc/GMT-1"
    assert s.ingest_on_startup is True


def test_rejects_duplicate_city_names():
    with pytest.raises(ValidationError):
        Settings(cities=[{"name": "Brno", "lat": 1, "lon": 1}, {"name": "Brno", "lat": 2, "lon": 2}])


@pytest.mark.parametrize(
    "field, value",
    [("retention_days", 0), ("past_days", 17), ("forecast_days", -1), ("fetch_schedule_hours", 5)],
)
def test_rejects_out_of_range_values(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


# ── Clock ──────────────────────────────────────────────────────────────────────

def test_fixed_offset_clock_uses_configured_offset():
    now = FixedOffsetClock(1).now()
    assert now.utcoffset() == timedelta(hours=1)


def test_frozen_clock_date_boundary():
    # 23:30 UTC is already the next day at +01:00
    instant = datetime(2026, 10, 16, 23, 30, tzinfo=timezone.utc).astimezone(
        timezone(timedelta(hours=1))
    )
    clock = FrozenClock(instant)
    assert clock.today().isoformat() == "2026-10-17"
    clock.advance(timedelta(days=1))
    assert clock.today().isoformat() == "2026-10-18"


def test_frozen_clock_requires_aware_datetime():
    with pytest.raises(ValueError):
        FrozenClock(datetime(2026, 10, 17))


# ── Rate limiter ───────────────────────────────────────────────────────────────

def test_rate_limiter_disabled_for_zero_interval():
    assert RateLimiter.from_interval(0) is None


@pytest.mark.asyncio
async def test_rate_limiter_first_token_is_immediate():
    limiter = RateLimiter.from_interval(60)
    # Would block for a minute if the bucket did not start full
    await limiter.acquire()


def test_rate_limiter_rejects_bad_rate():
    with pytest.raises(ValueError):
        RateLimiter(rate=0)


@pytest.mark.asyncio
async def test_rate_limiter_spaces_consecutive_acquires():
    limiter = RateLimiter(rate=20)
    await limiter.acquire()
    started = time.monotonic()
    await limiter.acquire()
    # One token per 50 ms; allow for timer granularity
    assert time.monotonic() - started >= 0.04
