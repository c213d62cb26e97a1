"""Ingestion pipeline.

For every configured city, one at a time:

    rate limit → fetch window from Open-Meteo → stamp fetch_date → upsert samples

A failing city (transport, parse or storage error) is logged and recorded in
the report; the remaining cities still run. ``run_cycle`` wraps ingestion and
retention cleanup behind the reentrancy guard and is what both the scheduled
task and the manual trigger call.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tempcompare.clock import Clock, FixedOffsetClock
from tempcompare.config import CityConfig, Settings
from tempcompare.db.session import build_sessionmaker
from tempcompare.exceptions import StorageError, TransportError
from tempcompare.models.sample import Sample
from tempcompare.ratelimit import RateLimiter
from tempcompare.services.locking import IngestionLock
from tempcompare.services.provider import HourlyReading, OpenMeteoClient
from tempcompare.services.retention import purge_expired

logger = logging.getLogger(__name__)

_CONFLICT_KEYS = ["city", "fetch_date", "target_date", "hour"]


@dataclass
class CityResult:
    city: str
    ok: bool
    samples: int = 0
    error: str | None = None


@dataclass
class IngestionReport:
    fetch_date: date
    results: list[CityResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [r.city for r in self.results if r.ok]

    @property
    def failed(self) -> list[str]:
        return [r.city for r in self.results if not r.ok]


@dataclass
class CycleReport:
    ingestion: IngestionReport
    deleted: int


async def upsert_samples(
    db: AsyncSession,
    city: str,
    fetch_date: date,
    readings: list[HourlyReading],
    fetched_at: datetime,
) -> int:
    """Insert or overwrite one row per reading; returns the number of rows written."""
    if not readings:
        return 0

    # Last reading wins if the upstream repeats a local hour (DST fall-back)
    by_key = {(r.target_date, r.hour): r for r in readings}
    rows = [
        {
            "city": city,
            "fetch_date": fetch_date,
            "target_date": r.target_date,
            "hour": r.hour,
            "temperature": r.temperature,
            "updated_at": fetched_at,
        }
        for r in by_key.values()
    ]

    insert = sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert
    chunk_size = 500
    for i in range(0, len(rows), chunk_size):
        stmt = insert(Sample).values(rows[i : i + chunk_size])
        stmt = stmt.on_conflict_do_update(
            index_elements=_CONFLICT_KEYS,
            set_={
                "temperature": stmt.excluded.temperature,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await db.execute(stmt)
    return len(rows)


class IngestionPipeline:
    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        client: OpenMeteoClient,
        clock: Clock,
        lock: IngestionLock,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.client = client
        self.clock = clock
        self.lock = lock
        self.rate_limiter = rate_limiter

    async def _ingest_city(self, db: AsyncSession, city: CityConfig) -> CityResult:
        try:
            readings = await self.client.fetch_hourly(city)
        except TransportError as exc:
            logger.warning("Skipping %s: %s", city.name, exc)
            return CityResult(city=city.name, ok=False, error=str(exc))

        # Stamped after the fetch succeeds so a slow call crossing midnight dates correctly
        fetch_date = self.clock.today()
        try:
            written = await upsert_samples(db, city.name, fetch_date, readings, self.clock.now())
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.warning("Storing samples for %s failed: %s", city.name, exc)
            return CityResult(city=city.name, ok=False, error=f"storage error: {exc}")

        logger.info("Stored %d samples for %s (fetch_date=%s)", written, city.name, fetch_date)
        return CityResult(city=city.name, ok=True, samples=written)

    async def ingest(self, cities: list[CityConfig] | None = None) -> IngestionReport:
        """Fetch and store every city sequentially; never aborts on a single city."""
        targets = self.settings.cities if cities is None else cities
        report = IngestionReport(fetch_date=self.clock.today())
        logger.info("Starting ingestion for %d cities", len(targets))

        async with self.session_factory() as db:
            for city in targets:
                if self.rate_limiter is not None:
                    await self.rate_limiter.acquire()
                report.results.append(await self._ingest_city(db, city))

        logger.info(
            "Finished ingestion: %d ok, %d failed %s",
            len(report.succeeded),
            len(report.failed),
            report.failed or "",
        )
        return report

    async def cleanup(self) -> int:
        async with self.session_factory() as db:
            return await purge_expired(db, self.clock.today(), self.settings.retention_days)

    async def run_cycle(self) -> CycleReport:
        """Ingest all cities then purge expired samples, guarded against overlap."""
        async with self.lock.hold():
            report = await self.ingest()
            try:
                deleted = await self.cleanup()
            except StorageError as exc:
                logger.warning("Retention cleanup skipped: %s", exc)
                deleted = 0
        return CycleReport(ingestion=report, deleted=deleted)


def build_pipeline(
    settings: Settings,
    engine: AsyncEngine,
    clock: Clock | None = None,
) -> IngestionPipeline:
    """Wire a pipeline from settings; one per process so the guard is shared."""
    return IngestionPipeline(
        settings=settings,
        session_factory=build_sessionmaker(engine),
        client=OpenMeteoClient(settings),
        clock=clock or FixedOffsetClock(settings.local_utc_offset_hours),
        lock=IngestionLock(engine),
        rate_limiter=RateLimiter.from_interval(settings.inter_city_delay_seconds),
    )
