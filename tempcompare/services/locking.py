"""Reentrancy guard for ingestion runs.

The scheduled Celery task and the manual ``POST /api/fetch`` share one
ingestion routine. ``IngestionLock`` stops two runs from upserting the same
city at once: an in-process ``asyncio.Lock`` covers a single worker, and on
PostgreSQL a session-level advisory lock covers separate processes.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from tempcompare.exceptions import IngestionInProgressError

logger = logging.getLogger(__name__)

# Arbitrary constant shared by every process that ingests into the same database
ADVISORY_LOCK_KEY = 0x7E3C0A11


class IngestionLock:
    def __init__(self, engine: AsyncEngine, key: int = ADVISORY_LOCK_KEY) -> None:
        self._engine = engine
        self._key = key
        self._local = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._local.locked()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        """Hold the guard for the duration of the block, or raise if taken."""
        if self._local.locked():
            raise IngestionInProgressError("An ingestion run is already in progress")

        async with self._local:
            if self._engine.dialect.name != "postgresql":
                yield
                return

            async with self._engine.connect() as conn:
                acquired = (
                    await conn.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": self._key})
                ).scalar_one()
                if not acquired:
                    raise IngestionInProgressError(
                        "An ingestion run is already in progress in another process"
                    )
                logger.debug("Acquired ingestion advisory lock %d", self._key)
                try:
                    yield
                finally:
                    await conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": self._key})
                    await conn.commit()
