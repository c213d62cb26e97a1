from fastapi import APIRouter

from tempcompare.api.endpoints import fetch, system, weather

api_router = APIRouter()

# Ingestion status
api_router.include_router(system.router, tags=["System"])

# Cities, actual-vs-forecast comparison, debug breakdown
api_router.include_router(weather.router, tags=["Weather"])

# Manual ingestion trigger
api_router.include_router(fetch.router, tags=["Ingestion"])
