"""Retention cleanup: purge samples fetched longer ago than the retention window."""

import logging
from datetime import date, timedelta

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tempcompare.exceptions import StorageError
from tempcompare.models.sample import Sample

logger = logging.getLogger(__name__)


async def purge_expired(db: AsyncSession, today: date, retention_days: int) -> int:
    """Delete samples whose fetch_date is before ``today - retention_days``.

    With a 14-day window a sample fetched 15 days ago is removed while one
    fetched 14 or fewer days ago is kept. Safe to run repeatedly.
    """
    if retention_days < 1:
        raise ValueError("retention_days must be at least 1")

    cutoff = today - timedelta(days=retention_days)
    try:
        result = await db.execute(delete(Sample).where(Sample.fetch_date < cutoff))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError(f"Retention cleanup failed: {exc}") from exc

    deleted = result.rowcount or 0
    logger.info("Retention cleanup removed %d samples fetched before %s", deleted, cutoff)
    return deleted
