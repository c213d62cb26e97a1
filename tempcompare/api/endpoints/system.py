import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tempcompare.config import Settings, get_settings
from tempcompare.db.session import get_db
from tempcompare.services.status import collect_status

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/status",
    summary="Ingestion status",
    description=(
        "Returns the last ingestion time, per-city last update, configured city count, "
        "number of distinct target days and total stored samples."
    ),
)
async def get_status(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await collect_status(db, settings)
