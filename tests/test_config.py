import pytest

from qbuyse_sitemaps.config import SitemapConfigService
from qbuyse_sitemaps.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CACHE_EXPIRY_MINUTES,
    DEFAULT_MAX_URLS_PER_SITEMAP,
)
from qbuyse_sitemaps.models import SitemapConfig


def _config(**overrides) -> SitemapConfig:
    values = {
        "base_url": "https://qbuyse.com",
        "max_urls_per_sitemap": 50000,
        "cache_expiry_minutes": 60,
    }
    values.update(overrides)
    return SitemapConfig(**values)


def test_defaults_are_valid():
    service = SitemapConfigService()
    cfg = service.get_config()

    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.max_urls_per_sitemap == DEFAULT_MAX_URLS_PER_SITEMAP
    assert cfg.cache_expiry_minutes == DEFAULT_CACHE_EXPIRY_MINUTES
    assert service.validate_config().is_valid


def test_get_config_returns_a_copy():
    service = SitemapConfigService(_config())
    cfg = service.get_config()
    cfg.base_url = "https://changed.example"

    assert service.base_url == "https://qbuyse.com"


def test_constructor_strips_trailing_slash():
    service = SitemapConfigService(_config(base_url="https://qbuyse.com/"))
    assert service.base_url == "https://qbuyse.com"


def test_update_config_merges_and_strips_trailing_slash():
    service = SitemapConfigService(_config())
    service.update_config(base_url="https://x.com/")

    cfg = service.get_config()
    assert cfg.base_url == "https://x.com"
    assert cfg.max_urls_per_sitemap == 50000
    assert cfg.cache_expiry_minutes == 60


def test_update_config_rejects_unknown_fields():
    service = SitemapConfigService(_config())
    with pytest.raises(TypeError):
        service.update_config(colour="blue")


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"base_url": ""}, "Base URL is required"),
        ({"base_url": "not a url"}, "Base URL must be a valid URL"),
        ({"base_url": "ftp://qbuyse.com"}, "Base URL must be a valid URL"),
        ({"max_urls_per_sitemap": 0}, "Max URLs per sitemap must be greater than 0"),
        ({"max_urls_per_sitemap": -5}, "Max URLs per sitemap must be greater than 0"),
        ({"cache_expiry_minutes": 0}, "Cache expiry minutes must be greater than 0"),
    ],
)
def test_validate_config_reports_errors(overrides, message):
    result = SitemapConfigService(_config(**overrides)).validate_config()

    assert result.is_valid is False
    assert message in result.errors


def test_validate_config_collects_all_errors():
    result = SitemapConfigService(
        _config(base_url="", max_urls_per_sitemap=0, cache_expiry_minutes=0)
    ).validate_config()

    assert not result.is_valid
    assert len(result.errors) == 4


def test_from_env(monkeypatch):
    monkeypatch.setenv("SITEMAP_BASE_URL", "https://staging.qbuyse.com/")
    monkeypatch.setenv("SITEMAP_MAX_URLS_PER_SITEMAP", "1000")
    monkeypatch.setenv("SITEMAP_CACHE_EXPIRY_MINUTES", "not-a-number")
    monkeypatch.setenv("SITEMAP_GENERATION_TIMEOUT_SECONDS", "5")

    service = SitemapConfigService.from_env()

    assert service.base_url == "https://staging.qbuyse.com"
    assert service.max_urls_per_sitemap == 1000
    assert service.cache_expiry_minutes == DEFAULT_CACHE_EXPIRY_MINUTES
    assert service.generation_timeout_seconds == 5


def test_from_env_defaults(monkeypatch):
    for name in (
        "SITEMAP_BASE_URL",
        "SITEMAP_MAX_URLS_PER_SITEMAP",
        "SITEMAP_CACHE_EXPIRY_MINUTES",
        "SITEMAP_GENERATION_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    service = SitemapConfigService.from_env()

    assert service.get_config() == SitemapConfigService().get_config()
    assert service.generation_timeout_seconds == 30
