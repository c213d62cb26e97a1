from celery import Celery
from celery.schedules import crontab

from tempcompare.config import get_settings

settings = get_settings()

celery_app = Celery(
    "tempcompare",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["tempcompare.workers.tasks"],
)

celery_app.conf.update(
    # Serialisation
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Reliability
    task_track_started=True,
    task_acks_late=True,           # Ack only after task completes (prevents message loss on crash)
    worker_prefetch_multiplier=1,  # One ingestion cycle at a time per worker
    # Result expiry — keep results for 24 hours
    result_expires=86400,
    # Scheduled fetch: on the hour, every N hours ("0 */6 * * *" by default)
    beat_schedule={
        "ingest-cycle": {
            "task": "tempcompare.ingest_cycle",
            "schedule": crontab(minute=0, hour=f"*/{settings.fetch_schedule_hours}"),
        },
    },
)
