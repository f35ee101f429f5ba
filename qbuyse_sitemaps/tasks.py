import asyncio
import logging
from typing import Any, Dict

from celery.exceptions import SoftTimeLimitExceeded

from .cache import RedisSitemapCache
from .celery_app import celery_app
from .db import dispose_engine
from .generator import SitemapGeneratorService, generator_from_env

logger = logging.getLogger(__name__)


@celery_app.task(
    name="qbuyse_sitemaps.tasks.warm_sitemap_cache",
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
    soft_time_limit=60 * 9,
    time_limit=60 * 10,
)
def warm_sitemap_cache():
    try:
        return asyncio.run(_run())
    except SoftTimeLimitExceeded:
        logger.warning("sitemap_warm_timeout")
        raise


async def _run() -> Dict[str, Any]:
    generator = generator_from_env()
    try:
        return await warm_all(generator)
    finally:
        if isinstance(generator.cache, RedisSitemapCache):
            await generator.cache.close()
        await dispose_engine()


async def warm_all(generator: SitemapGeneratorService) -> Dict[str, Any]:
    """Regenerate every sitemap document into the cache."""
    await generator.generate_sitemap_index(refresh=True)
    await generator.generate_static_sitemap(refresh=True)
    await generator.generate_categories_sitemap(refresh=True)
    await generator.generate_states_sitemap(refresh=True)

    pages = await generator.count_posts_pages(refresh=True)
    for page in range(1, pages + 1):
        await generator.generate_posts_sitemap(page, refresh=True)

    logger.info("sitemap_warm_ok posts_pages=%s", pages)
    return {"warmed": True, "posts_pages": pages}
