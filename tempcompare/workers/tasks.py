"""Celery task definitions.

The scheduled fetch runs as a single task (ingest_cycle) that ingests every
configured city and then purges samples past the retention window:

    ingest (city by city) → retention cleanup
                ↘ per-city failures are logged and skipped

Each run builds its own engine inside ``asyncio.run`` so no connection is
shared across event loops.
"""

import asyncio
import logging

from tempcompare.config import get_settings
from tempcompare.db.session import build_engine
from tempcompare.exceptions import IngestionInProgressError
from tempcompare.services.ingestion import build_pipeline
from tempcompare.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


# ── Entry point ────────────────────────────────────────────────────────────────

@celery_app.task(bind=True, name="tempcompare.ingest_cycle", max_retries=0)
def ingest_cycle(self) -> dict:
    """Celery entry point — runs the async ingestion cycle in a new event loop."""
    return asyncio.run(_run_cycle())


# ── Async cycle ────────────────────────────────────────────────────────────────

async def _run_cycle() -> dict:
    settings = get_settings()
    engine = build_engine(settings)
    try:
        pipeline = build_pipeline(settings, engine)
        try:
            cycle = await pipeline.run_cycle()
        except IngestionInProgressError:
            logger.warning("Ingestion already running elsewhere; skipping this run")
            return {"skipped": True}
    finally:
        await engine.dispose()

    report = cycle.ingestion
    logger.info(
        "Scheduled ingestion done: %d ok, %d failed, %d expired samples removed",
        len(report.succeeded),
        len(report.failed),
        cycle.deleted,
    )
    return {
        "skipped": False,
        "fetch_date": report.fetch_date.isoformat(),
        "succeeded": report.succeeded,
        "failed": report.failed,
        "deleted": cycle.deleted,
    }
