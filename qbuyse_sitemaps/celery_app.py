import os
from celery import Celery

from .config import SitemapConfigService

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Refresh the cache on the same cadence entries expire.
WARM_INTERVAL_SECONDS = 60 * SitemapConfigService.from_env().cache_expiry_minutes

celery_app = Celery(
    "qbuyse_sitemaps",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["qbuyse_sitemaps.tasks"],
)

celery_app.conf.update(
    timezone=os.getenv("CELERY_TIMEZONE", "Asia/Kolkata"),
    enable_utc=True,

    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,

    beat_schedule={
        "warm-sitemap-cache": {
            "task": "qbuyse_sitemaps.tasks.warm_sitemap_cache",
            "schedule": max(WARM_INTERVAL_SECONDS, 60),
        }
    },
)
