"""Actual-vs-forecast reconciliation.

For a target date *d*:

* actual[h]: the sample fetched on *d* itself (fetch_date == target_date)
* forecast[h]: among samples fetched before *d*, the one with the earliest
  fetch_date. Earliest wins so that every day is compared against a forecast
  of the same lead time; this is a policy, not an accuracy choice.

Hours without data stay ``None``. A zero-degree reading is a value, not a gap.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tempcompare.config import Settings
from tempcompare.exceptions import CityNotFoundError, StorageError
from tempcompare.models.sample import Sample

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class SampleRow:
    fetch_date: date
    target_date: date
    hour: int
    temperature: float


@dataclass
class DaySeries:
    target_date: date
    actual: list[float | None]
    forecast: list[float | None]


@dataclass
class CityComparison:
    city: str
    today: DaySeries
    yesterday: DaySeries

    def to_payload(self) -> dict:
        return {
            "today": self.today.target_date.isoformat(),
            "yesterday": self.yesterday.target_date.isoformat(),
            "todayActual": self.today.actual,
            "yesterdayActual": self.yesterday.actual,
            "todayForecast": self.today.forecast,
            "yesterdayForecast": self.yesterday.forecast,
        }


def reconcile_day(rows: Iterable[SampleRow], target_date: date) -> DaySeries:
    """Split the samples describing *target_date* into actual and forecast series."""
    actual: list[float | None] = [None] * HOURS_PER_DAY
    forecast: list[float | None] = [None] * HOURS_PER_DAY
    forecast_fetched: list[date | None] = [None] * HOURS_PER_DAY

    for row in rows:
        if row.target_date != target_date or not 0 <= row.hour < HOURS_PER_DAY:
            continue
        if row.fetch_date == target_date:
            actual[row.hour] = row.temperature
        elif row.fetch_date < target_date:
            seen = forecast_fetched[row.hour]
            if seen is None or row.fetch_date < seen:
                forecast[row.hour] = row.temperature
                forecast_fetched[row.hour] = row.fetch_date

    return DaySeries(target_date=target_date, actual=actual, forecast=forecast)


async def load_rows(db: AsyncSession, city: str, target_dates: list[date]) -> list[SampleRow]:
    # fetch_date <= target_date excludes historical re-reads that are neither actual nor forecast
    result = await db.execute(
        select(Sample.fetch_date, Sample.target_date, Sample.hour, Sample.temperature).where(
            Sample.city == city,
            Sample.target_date.in_(target_dates),
            Sample.fetch_date <= Sample.target_date,
        )
    )
    return [SampleRow(*row) for row in result.all()]


async def compare_city(
    db: AsyncSession, settings: Settings, city: str, reference_date: date
) -> CityComparison:
    """Build today/yesterday series for *city* relative to *reference_date*.

    Raises ``CityNotFoundError`` for cities outside the configured list and
    ``StorageError`` when the database cannot be read. No samples is not an
    error: the series come back with every slot ``None``.
    """
    if settings.find_city(city) is None:
        raise CityNotFoundError(city)

    yesterday = reference_date - timedelta(days=1)
    try:
        rows = await load_rows(db, city, [reference_date, yesterday])
    except SQLAlchemyError as exc:
        logger.error("Reading samples for %s failed: %s", city, exc)
        raise StorageError(f"Could not read weather data for {city}") from exc

    return CityComparison(
        city=city,
        today=reconcile_day(rows, reference_date),
        yesterday=reconcile_day(rows, yesterday),
    )
