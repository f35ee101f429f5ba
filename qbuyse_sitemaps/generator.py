from __future__ import annotations

import hashlib
import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Tuple

from pydantic import ValidationError

from .cache import MemorySitemapCache, RedisSitemapCache, SitemapCache
from .config import SitemapConfigService
from .constants import (
    CATEGORIES_SITEMAP_FILE,
    CATEGORY_CHANGEFREQ,
    CATEGORY_PATH_TEMPLATE,
    CATEGORY_PRIORITY,
    POST_CHANGEFREQ,
    POST_PATH_TEMPLATE,
    POST_PRIORITY,
    POSTS_SITEMAP_FILE_TEMPLATE,
    SITEMAP_NAMESPACE,
    STATE_CHANGEFREQ,
    STATE_PATH_TEMPLATE,
    STATE_PRIORITY,
    STATES_SITEMAP_FILE,
    STATIC_SITEMAP_FILE,
    XML_DECLARATION,
)
from .data_source import PostgresDataSource, SitemapDataSource, StaticTablesDataSource
from .db import database_configured
from .errors import (
    SitemapError,
    SitemapErrorType,
    configuration_error,
    invalid_request,
    with_timeout,
)
from .logging_utils import log_sitemap_metrics
from .models import (
    SitemapConfig,
    SitemapEntry,
    SitemapIndex,
    SitemapIndexItem,
    SitemapMetadata,
)
from .url_utils import (
    calculate_pagination,
    escape_xml,
    format_sitemap_date,
    generate_cache_key,
    join_url_paths,
)

logger = logging.getLogger(__name__)

# Errors from these layers keep their type (and status) when re-raised.
_PASSTHROUGH_TYPES = (SitemapErrorType.TIMEOUT_ERROR, SitemapErrorType.DATABASE_ERROR)

Builder = Callable[[SitemapConfig], Awaitable[Tuple[str, int]]]

# Files listed by the sitemap index, in order.
SITEMAP_FILES = (
    STATIC_SITEMAP_FILE,
    CATEGORIES_SITEMAP_FILE,
    STATES_SITEMAP_FILE,
    POSTS_SITEMAP_FILE_TEMPLATE.format(page=1),
)
SITEMAP_TYPES = ("index", "static", "categories", "states", "posts")


def _today() -> str:
    return format_sitemap_date(datetime.now(timezone.utc))


def format_priority(priority: float) -> str:
    text = f"{priority:.2f}".rstrip("0")
    return text + "0" if text.endswith(".") else text


def build_urlset_xml(entries: List[SitemapEntry]) -> str:
    urls = "".join(
        f"""
  <url>
    <loc>{escape_xml(entry.url)}</loc>
    <lastmod>{escape_xml(entry.lastmod)}</lastmod>
    <changefreq>{entry.changefreq}</changefreq>
    <priority>{format_priority(entry.priority)}</priority>
  </url>"""
        for entry in entries
    )
    return f"""{XML_DECLARATION}
<urlset xmlns="{SITEMAP_NAMESPACE}">{urls}
</urlset>"""


def build_sitemap_index_xml(index: SitemapIndex) -> str:
    sitemaps = "".join(
        f"""
  <sitemap>
    <loc>{escape_xml(item.loc)}</loc>
    <lastmod>{escape_xml(item.lastmod)}</lastmod>
  </sitemap>"""
        for item in index.sitemaps
    )
    return f"""{XML_DECLARATION}
<sitemapindex xmlns="{SITEMAP_NAMESPACE}">{sitemaps}
</sitemapindex>"""


class SitemapGeneratorService:
    """
    Builds the sitemap index and the static, categories, states and
    paginated posts sitemaps as XML strings.

    The configuration is validated on construction and on every update; an
    invalid configuration raises CONFIGURATION_ERROR immediately.
    """

    def __init__(
        self,
        config_service: SitemapConfigService,
        data_source: SitemapDataSource | None = None,
        cache: SitemapCache | None = None,
    ) -> None:
        self.config_service = config_service
        self.data_source = data_source or StaticTablesDataSource()
        self.cache = cache
        self._validate_config()

    @property
    def config(self) -> SitemapConfig:
        return self.config_service.get_config()

    def _validate_config(self) -> None:
        validation = self.config_service.validate_config()
        if not validation.is_valid:
            raise configuration_error(validation.errors)

    # -------------------------
    # Public generators
    # -------------------------
    async def generate_sitemap_index(self, *, refresh: bool = False) -> str:
        # lastmod is the generation date, so the date is part of the key
        return await self._generate(
            "index", "sitemap index", self._build_index, _today(), refresh=refresh
        )

    async def generate_static_sitemap(self, *, refresh: bool = False) -> str:
        return await self._generate("static", "static sitemap", self._build_static, refresh=refresh)

    async def generate_categories_sitemap(self, *, refresh: bool = False) -> str:
        return await self._generate(
            "categories", "categories sitemap", self._build_categories, refresh=refresh
        )

    async def generate_states_sitemap(self, *, refresh: bool = False) -> str:
        return await self._generate("states", "states sitemap", self._build_states, refresh=refresh)

    async def generate_posts_sitemap(self, page: int = 1, *, refresh: bool = False) -> str:
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise invalid_request(f"Posts sitemap page must be a positive integer, got {page!r}")

        async def build(config: SitemapConfig) -> Tuple[str, int]:
            return await self._build_posts(config, page)

        return await self._generate(
            "posts", f"posts sitemap page {page}", build, page, refresh=refresh
        )

    async def count_posts_pages(self, *, refresh: bool = False) -> int:
        config = self.config
        key = self._cache_key(config, "posts_pages")

        if not refresh:
            cached = await self._cache_get(key)
            if cached and isinstance(cached.get("pages"), int):
                return cached["pages"]

        total = await self._guarded("count posts", self.data_source.count_posts())
        pages = max(calculate_pagination(total, config.max_urls_per_sitemap)["total_pages"], 1)
        await self._cache_put(key, {"pages": pages}, config.cache_expiry_minutes * 60)
        return pages

    async def count_urls(self, sitemap_type: str) -> int:
        """Number of URLs the given sitemap type lists (all pages, for posts)."""
        if sitemap_type not in SITEMAP_TYPES:
            raise invalid_request(f"Unknown sitemap type: {sitemap_type}")
        return await self._guarded(f"count {sitemap_type} URLs", self._count_urls(sitemap_type))

    async def _count_urls(self, sitemap_type: str) -> int:
        cap = self.config.max_urls_per_sitemap
        if sitemap_type == "index":
            return len(SITEMAP_FILES)
        if sitemap_type == "static":
            return min(len(await self.data_source.get_static_pages()), cap)
        if sitemap_type == "categories":
            return min(len(await self.data_source.get_categories()), cap)
        if sitemap_type == "states":
            return min(len(await self.data_source.get_states()), cap)
        return await self.data_source.count_posts()

    def get_sitemap_metadata(self, sitemap_type: str, url_count: int) -> SitemapMetadata:
        config = self.config
        return SitemapMetadata(
            sitemap_type=sitemap_type,
            last_modified=_today(),
            url_count=url_count,
            base_url=config.base_url,
            max_urls_per_sitemap=config.max_urls_per_sitemap,
        )

    def update_config(self, **updates: Any) -> SitemapConfig:
        previous = self.config_service.get_config()
        try:
            self.config_service.update_config(**updates)
        except (TypeError, ValidationError) as exc:
            raise SitemapError(
                SitemapErrorType.CONFIGURATION_ERROR,
                f"Sitemap configuration error: {exc}",
                500,
            ) from exc

        validation = self.config_service.validate_config()
        if not validation.is_valid:
            self.config_service.update_config(**previous.model_dump())
            logger.warning("sitemap_config_rejected errors=%s", validation.errors)
            raise configuration_error(validation.errors)

        config = self.config_service.get_config()
        logger.info(
            "sitemap_config_updated base_url=%s max_urls=%s cache_minutes=%s",
            config.base_url,
            config.max_urls_per_sitemap,
            config.cache_expiry_minutes,
        )
        return config

    async def apply_config_update(self, **updates: Any) -> SitemapConfig:
        """Update the configuration and drop every cached document."""
        config = self.update_config(**updates)
        if self.cache is not None:
            try:
                cleared = await self.cache.clear()
            except SitemapError as exc:
                logger.warning("sitemap_cache_clear_failed err=%s", exc.message)
            else:
                logger.info("sitemap_cache_cleared reason=config_update keys=%s", cleared)
        return config

    # -------------------------
    # Generation plumbing
    # -------------------------
    def _cache_key(self, config: SitemapConfig, sitemap_type: str, *params: Any) -> str:
        fingerprint = hashlib.sha1(
            f"{config.base_url}|{config.max_urls_per_sitemap}".encode("utf-8")
        ).hexdigest()[:12]
        return generate_cache_key(sitemap_type, *params, fingerprint)

    async def _cache_get(self, key: str) -> dict | None:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except SitemapError as exc:
            logger.warning("sitemap_cache_read_failed key=%s err=%s", key, exc.message)
            return None

    async def _cache_put(self, key: str, value: dict, ttl_seconds: int) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, value, ttl_seconds)
        except SitemapError as exc:
            logger.warning("sitemap_cache_write_failed key=%s err=%s", key, exc.message)

    async def _guarded(self, action: str, operation: Awaitable[Any]) -> Any:
        """
        Await one data-source step under the generation timeout. Failures come
        back as SitemapError; timeouts and database errors keep their type.
        """
        try:
            return await with_timeout(
                operation,
                self.config_service.generation_timeout_seconds,
                f"Timed out trying to {action}",
            )
        except SitemapError as exc:
            logger.exception("sitemap_step_failed action=%s err=%s", action, exc.message)
            passthrough = exc.error_type in _PASSTHROUGH_TYPES
            raise SitemapError(
                exc.error_type if passthrough else SitemapErrorType.GENERATION_FAILED,
                f"Failed to {action}: {exc.message}",
                exc.status_code if passthrough else 500,
            ) from exc
        except Exception as exc:
            logger.exception("sitemap_step_failed action=%s err=%s", action, exc)
            raise SitemapError(
                SitemapErrorType.GENERATION_FAILED,
                f"Failed to {action}: {str(exc) or type(exc).__name__}",
                500,
            ) from exc

    async def _generate(
        self,
        sitemap_type: str,
        label: str,
        build: Builder,
        *params: Any,
        refresh: bool = False,
    ) -> str:
        started = time.perf_counter()
        config = self.config
        key = self._cache_key(config, sitemap_type, *params)

        if not refresh:
            cached = await self._cache_get(key)
            if cached and isinstance(cached.get("xml"), str):
                elapsed_ms = (time.perf_counter() - started) * 1000
                log_sitemap_metrics(sitemap_type, int(cached.get("url_count") or 0), elapsed_ms, True)
                return cached["xml"]

        xml, url_count = await self._guarded(f"generate {label}", build(config))

        value = {
            "xml": xml,
            "url_count": url_count,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
        await self._cache_put(key, value, config.cache_expiry_minutes * 60)
        elapsed_ms = (time.perf_counter() - started) * 1000
        log_sitemap_metrics(sitemap_type, url_count, elapsed_ms, False)
        return xml

    # -------------------------
    # Builders
    # -------------------------
    async def _build_index(self, config: SitemapConfig) -> Tuple[str, int]:
        now = _today()
        index = SitemapIndex(
            sitemaps=[
                SitemapIndexItem(loc=join_url_paths(config.base_url, name), lastmod=now)
                for name in SITEMAP_FILES
            ]
        )
        return build_sitemap_index_xml(index), len(index.sitemaps)

    async def _build_static(self, config: SitemapConfig) -> Tuple[str, int]:
        now = _today()
        pages = await self.data_source.get_static_pages()
        entries = [
            SitemapEntry(
                url=join_url_paths(config.base_url, page.url),
                lastmod=now,
                changefreq=page.changefreq,
                priority=page.priority,
            )
            for page in pages[: config.max_urls_per_sitemap]
        ]
        return build_urlset_xml(entries), len(entries)

    async def _build_categories(self, config: SitemapConfig) -> Tuple[str, int]:
        now = _today()
        categories = await self.data_source.get_categories()
        entries = [
            SitemapEntry(
                url=join_url_paths(config.base_url, CATEGORY_PATH_TEMPLATE.format(slug=cat.slug)),
                lastmod=now,
                changefreq=CATEGORY_CHANGEFREQ,
                priority=CATEGORY_PRIORITY,
            )
            for cat in categories[: config.max_urls_per_sitemap]
        ]
        return build_urlset_xml(entries), len(entries)

    async def _build_states(self, config: SitemapConfig) -> Tuple[str, int]:
        now = _today()
        states = await self.data_source.get_states()
        entries = [
            SitemapEntry(
                url=join_url_paths(config.base_url, STATE_PATH_TEMPLATE.format(slug=state.slug)),
                lastmod=now,
                changefreq=STATE_CHANGEFREQ,
                priority=STATE_PRIORITY,
            )
            for state in states[: config.max_urls_per_sitemap]
        ]
        return build_urlset_xml(entries), len(entries)

    async def _build_posts(self, config: SitemapConfig, page: int) -> Tuple[str, int]:
        cap = config.max_urls_per_sitemap
        posts = await self.data_source.get_posts((page - 1) * cap, cap)
        entries = [
            SitemapEntry(
                url=join_url_paths(config.base_url, POST_PATH_TEMPLATE.format(id=post.id)),
                lastmod=format_sitemap_date(post.updated_at or post.created_at),
                changefreq=POST_CHANGEFREQ,
                priority=POST_PRIORITY,
            )
            for post in posts[:cap]
        ]
        return build_urlset_xml(entries), len(entries)


def generator_from_env() -> SitemapGeneratorService:
    """Wire a generator from environment settings (DATABASE_URL, REDIS_URL, SITEMAP_*)."""
    config_service = SitemapConfigService.from_env()

    if database_configured():
        data_source: SitemapDataSource = PostgresDataSource()
    else:
        logger.warning("sitemap_database_missing using=static_tables posts=0")
        data_source = StaticTablesDataSource()

    if os.getenv("REDIS_URL", "").strip():
        cache: SitemapCache = RedisSitemapCache()
    else:
        cache = MemorySitemapCache()

    return SitemapGeneratorService(config_service, data_source=data_source, cache=cache)
