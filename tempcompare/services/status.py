"""Operational introspection: storage totals and per-city fetch breakdowns."""

import logging

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tempcompare.config import Settings
from tempcompare.exceptions import CityNotFoundError, StorageError
from tempcompare.models.sample import Sample

logger = logging.getLogger(__name__)


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


async def collect_status(db: AsyncSession, settings: Settings) -> dict:
    """Last ingestion time, per-city last update, distinct days and row count."""
    try:
        totals = await db.execute(
            select(
                func.max(Sample.updated_at),
                func.count(distinct(Sample.target_date)),
                func.count(),
            )
        )
        last_fetch, distinct_days, total_records = totals.one()

        per_city = await db.execute(
            select(Sample.city, func.max(Sample.updated_at)).group_by(Sample.city)
        )
        updated = dict(per_city.all())
    except SQLAlchemyError as exc:
        logger.error("Status query failed: %s", exc)
        raise StorageError("Database error") from exc

    return {
        "lastFetch": _iso(last_fetch),
        "totalCities": len(settings.cities),
        "cities": [
            {"city": name, "updatedAt": _iso(updated.get(name))}
            for name in settings.city_names()
        ],
        "distinctDays": distinct_days,
        "totalRecords": total_records,
    }


async def city_breakdown(db: AsyncSession, settings: Settings, city: str) -> dict:
    """Samples for *city* grouped by (fetch_date, target_date) with hour count and min/max."""
    if settings.find_city(city) is None:
        raise CityNotFoundError(city)

    try:
        result = await db.execute(
            select(
                Sample.fetch_date,
                Sample.target_date,
                func.count(),
                func.min(Sample.temperature),
                func.max(Sample.temperature),
            )
            .where(Sample.city == city)
            .group_by(Sample.fetch_date, Sample.target_date)
            .order_by(Sample.target_date, Sample.fetch_date)
        )
        rows = result.all()
    except SQLAlchemyError as exc:
        logger.error("Debug query for %s failed: %s", city, exc)
        raise StorageError("Database error") from exc

    return {
        "city": city,
        "rows": [
            {
                "fetchDate": fetch_date.isoformat(),
                "targetDate": target_date.isoformat(),
                "hours": hours,
                "minTemp": min_temp,
                "maxTemp": max_temp,
            }
            for fetch_date, target_date, hours, min_temp, max_temp in rows
        ],
    }
