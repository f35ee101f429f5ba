from __future__ import annotations

import logging
import os
from typing import Any

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CACHE_EXPIRY_MINUTES,
    DEFAULT_GENERATION_TIMEOUT_SECONDS,
    DEFAULT_MAX_URLS_PER_SITEMAP,
)
from .models import ConfigValidation, SitemapConfig
from .url_utils import is_valid_url

logger = logging.getLogger(__name__)


def _clean_str(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _env_int(name: str, default: int) -> int:
    raw = _clean_str(os.getenv(name, ""))
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        logger.warning("sitemap_config_bad_int name=%s value=%s default=%s", name, raw, default)
        return default


def _strip_trailing_slash(url: str) -> str:
    return url.rstrip("/") if url else url


def default_config() -> SitemapConfig:
    return SitemapConfig(
        base_url=DEFAULT_BASE_URL,
        max_urls_per_sitemap=DEFAULT_MAX_URLS_PER_SITEMAP,
        cache_expiry_minutes=DEFAULT_CACHE_EXPIRY_MINUTES,
    )


class SitemapConfigService:
    """
    Holds the sitemap configuration for one process.

    Construct it once at startup and pass it to every generator; reads return
    copies, updates are last-write-wins and must be re-validated by the caller.
    """

    def __init__(
        self,
        config: SitemapConfig | None = None,
        *,
        generation_timeout_seconds: float = DEFAULT_GENERATION_TIMEOUT_SECONDS,
    ) -> None:
        cfg = (config or default_config()).model_copy()
        cfg.base_url = _strip_trailing_slash(cfg.base_url)
        self._config = cfg
        self.generation_timeout_seconds = generation_timeout_seconds

    @classmethod
    def from_env(cls) -> "SitemapConfigService":
        base_url = _clean_str(os.getenv("SITEMAP_BASE_URL", "")) or DEFAULT_BASE_URL
        config = SitemapConfig(
            base_url=base_url,
            max_urls_per_sitemap=_env_int("SITEMAP_MAX_URLS_PER_SITEMAP", DEFAULT_MAX_URLS_PER_SITEMAP),
            cache_expiry_minutes=_env_int("SITEMAP_CACHE_EXPIRY_MINUTES", DEFAULT_CACHE_EXPIRY_MINUTES),
        )
        timeout = _env_int("SITEMAP_GENERATION_TIMEOUT_SECONDS", DEFAULT_GENERATION_TIMEOUT_SECONDS)
        if timeout <= 0:
            timeout = DEFAULT_GENERATION_TIMEOUT_SECONDS
        return cls(config, generation_timeout_seconds=timeout)

    def get_config(self) -> SitemapConfig:
        return self._config.model_copy()

    def update_config(self, **updates: Any) -> None:
        merged = self._config.model_dump()
        for key, value in updates.items():
            if key not in merged:
                raise TypeError(f"Unknown sitemap config field: {key}")
            if value is not None:
                merged[key] = value
        merged["base_url"] = _strip_trailing_slash(_clean_str(merged["base_url"]))
        self._config = SitemapConfig.model_validate(merged)

    def validate_config(self) -> ConfigValidation:
        cfg = self._config
        errors: list[str] = []

        if not cfg.base_url:
            errors.append("Base URL is required")

        if not is_valid_url(cfg.base_url):
            errors.append("Base URL must be a valid URL")

        if cfg.max_urls_per_sitemap <= 0:
            errors.append("Max URLs per sitemap must be greater than 0")

        if cfg.cache_expiry_minutes <= 0:
            errors.append("Cache expiry minutes must be greater than 0")

        return ConfigValidation(is_valid=not errors, errors=errors)

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def max_urls_per_sitemap(self) -> int:
        return self._config.max_urls_per_sitemap

    @property
    def cache_expiry_minutes(self) -> int:
        return self._config.cache_expiry_minutes
