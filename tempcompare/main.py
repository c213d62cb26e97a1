import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tempcompare.config import get_settings
from tempcompare.db.session import engine
from tempcompare.exceptions import (
    CityNotFoundError,
    IngestionInProgressError,
    StorageError,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    if settings.ingest_on_startup:
        from tempcompare.workers.tasks import ingest_cycle  # noqa: PLC0415

        try:
            ingest_cycle.delay()
        except Exception as exc:
            logger.warning("Startup ingestion not dispatched, broker unavailable: %s", exc)
        else:
            logger.info("Dispatched startup ingestion")
    yield
    logger.info("Shutting down, disposing DB engine")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Polls Open-Meteo hourly temperatures for a fixed set of cities and serves "
        "today/yesterday actual-vs-forecast comparisons."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error bodies are {"error": ...} ────────────────────────────────────────────
@app.exception_handler(CityNotFoundError)
async def city_not_found_handler(request: Request, exc: CityNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "City not found"})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)}
    )


@app.exception_handler(IngestionInProgressError)
async def ingestion_busy_handler(request: Request, exc: IngestionInProgressError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"error": str(exc)})


# ── Root liveness check ────────────────────────────────────────────────────────
@app.get("/health", tags=["System"], summary="Liveness check")
async def health():
    """Returns 200 OK if the service is running."""
    return {"status": "ok"}


# ── API routes ─────────────────────────────────────────────────────────────────
from tempcompare.api.router import api_router  # noqa: E402 — imported after app creation

app.include_router(api_router, prefix="/api")


# ── Static front-end (mounted last so it never shadows /api) ──────────────────
if settings.static_dir and Path(settings.static_dir).is_dir():
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
