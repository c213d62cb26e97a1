"""Tests for retention cleanup."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from tempcompare.models.sample import Sample
from tempcompare.services.ingestion import upsert_samples
from tempcompare.services.retention import purge_expired

from conftest import NOW, TODAY


async def _seed(db, make_readings, *ages: int) -> None:
    for age in ages:
        fetch = TODAY - timedelta(days=age)
        await upsert_samples(db, "Brno", fetch, make_readings(fetch, {0: float(age)}), NOW)
    await db.commit()


async def _remaining_ages(db) -> list[int]:
    result = await db.execute(select(Sample.fetch_date).order_by(Sample.fetch_date))
    return sorted((TODAY - d).days for d in result.scalars().all())


@pytest.mark.asyncio
async def test_fourteen_day_window_boundaries(db, make_readings):
    await _seed(db, make_readings, 15, 14, 13, 0)

    deleted = await purge_expired(db, TODAY, 14)

    assert deleted == 1
    assert await _remaining_ages(db) == [0, 13, 14]


@pytest.mark.asyncio
async def test_cleanup_is_idempotent(db, make_readings):
    await _seed(db, make_readings, 20, 16, 1)

    assert await purge_expired(db, TODAY, 14) == 2
    assert await purge_expired(db, TODAY, 14) == 0
    assert await _remaining_ages(db) == [1]


@pytest.mark.asyncio
async def test_cleanup_on_empty_table(db):
    assert await purge_expired(db, TODAY, 14) == 0


@pytest.mark.asyncio
async def test_rejects_non_positive_window(db):
    with pytest.raises(ValueError):
        await purge_expired(db, TODAY, 0)
