"""City comparison endpoints.

GET /cities          — configured city names, in configuration order
GET /weather/{city}  — today/yesterday actual and forecast series (24 slots each)
GET /debug/{city}    — raw (fetch_date, target_date) aggregates for inspection

Unknown cities return 404; database failures return 500. Both bodies are
``{"error": ...}`` via the handlers registered in ``tempcompare.main``.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tempcompare.clock import Clock
from tempcompare.config import Settings, get_settings
from tempcompare.db.session import get_db
from tempcompare.dependencies import get_clock
from tempcompare.services.reconciliation import compare_city
from tempcompare.services.status import city_breakdown

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/cities", summary="Configured cities")
async def list_cities(settings: Settings = Depends(get_settings)) -> list[str]:
    return settings.city_names()


@router.get(
    "/weather/{city}",
    summary="Actual vs forecast temperatures",
    description=(
        "Hourly actual and forecast temperatures for today and yesterday. "
        "Actual = fetched on the day itself; forecast = earliest fetch before the day. "
        "Hours without data are null."
    ),
)
async def get_weather(
    city: str,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
):
    comparison = await compare_city(db, settings, city, clock.today())
    return comparison.to_payload()


@router.get("/debug/{city}", summary="Stored sample breakdown for a city")
async def get_debug(
    city: str,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await city_breakdown(db, settings, city)
