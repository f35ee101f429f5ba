from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict

logger = logging.getLogger("qbuyse_sitemaps.metrics")


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def sitemap_metrics(
    sitemap_type: str,
    url_count: int,
    generation_time_ms: float,
    from_cache: bool = False,
) -> Dict[str, Any]:
    return {
        "sitemap_type": sitemap_type,
        "url_count": int(url_count),
        "generation_time_ms": round(float(generation_time_ms), 2),
        "from_cache": bool(from_cache),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def log_sitemap_metrics(
    sitemap_type: str,
    url_count: int,
    generation_time_ms: float,
    from_cache: bool = False,
) -> Dict[str, Any]:
    data = sitemap_metrics(sitemap_type, url_count, generation_time_ms, from_cache)
    logger.info(
        "sitemap_generated type=%s urls=%s ms=%s cache=%s",
        data["sitemap_type"],
        data["url_count"],
        data["generation_time_ms"],
        "hit" if data["from_cache"] else "miss",
    )
    return data
