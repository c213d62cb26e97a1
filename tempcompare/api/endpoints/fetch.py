"""Manual ingestion trigger.

POST /fetch — runs ingestion for every city followed by retention cleanup,
              synchronously, sharing the guard with the scheduled task.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from tempcompare.dependencies import get_pipeline
from tempcompare.exceptions import IngestionInProgressError
from tempcompare.services.ingestion import IngestionPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/fetch",
    summary="Fetch weather data for all cities now",
    description=(
        "Fetches every configured city from Open-Meteo, stores the samples and purges "
        "samples past the retention window. Cities that fail are listed but do not fail "
        "the request. Returns 409 if a run is already in progress."
    ),
)
async def trigger_fetch(pipeline: IngestionPipeline = Depends(get_pipeline)):
    try:
        cycle = await pipeline.run_cycle()
    except IngestionInProgressError:
        raise
    except Exception as exc:
        logger.exception("Manual fetch failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Fetch failed"},
        )

    report = cycle.ingestion
    logger.info("Manual fetch finished: %d/%d cities", len(report.succeeded), len(report.results))

    if report.failed:
        message = (
            f"Weather data fetched for {len(report.succeeded)} of {len(report.results)} cities"
        )
    else:
        message = "Weather data fetched for all cities"

    return {
        "success": True,
        "message": message,
        "fetchDate": report.fetch_date.isoformat(),
        "cities": [
            {"city": r.city, "ok": r.ok, "samples": r.samples, "error": r.error}
            for r in report.results
        ],
        "deleted": cycle.deleted,
    }
