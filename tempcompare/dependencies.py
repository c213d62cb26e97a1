from functools import lru_cache

from fastapi import Depends

from tempcompare.clock import Clock, FixedOffsetClock
from tempcompare.config import Settings, get_settings
from tempcompare.db.session import engine
from tempcompare.services.ingestion import IngestionPipeline, build_pipeline


def get_clock(settings: Settings = Depends(get_settings)) -> Clock:
    """FastAPI dependency: the fixed-offset clock queries are anchored to."""
    return FixedOffsetClock(settings.local_utc_offset_hours)


@lru_cache
def _process_pipeline() -> IngestionPipeline:
    return build_pipeline(get_settings(), engine)


def get_pipeline() -> IngestionPipeline:
    """FastAPI dependency: the single per-process pipeline, so its guard is shared."""
    return _process_pipeline()
