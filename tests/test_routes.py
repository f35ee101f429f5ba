from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from qbuyse_sitemaps.cache import MemorySitemapCache
from qbuyse_sitemaps.config import SitemapConfigService
from qbuyse_sitemaps.data_source import StaticTablesDataSource
from qbuyse_sitemaps.generator import SitemapGeneratorService
from qbuyse_sitemaps.main import app, get_generator
from qbuyse_sitemaps.models import PostInfo, SitemapConfig


def _posts(count: int):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [PostInfo(id=f"p{i}", created_at=start + timedelta(hours=i)) for i in range(count)]


@pytest.fixture()
def generator():
    config = SitemapConfig(base_url="https://qbuyse.com", max_urls_per_sitemap=10, cache_expiry_minutes=60)
    return SitemapGeneratorService(
        SitemapConfigService(config),
        data_source=StaticTablesDataSource(_posts(15)),
        cache=MemorySitemapCache(),
    )


@pytest.fixture()
def client(generator, monkeypatch):
    monkeypatch.setenv("API_BEARER_TOKEN", "test-token")
    app.dependency_overrides[get_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()


def _headers():
    return {"Authorization": "Bearer test-token"}


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


@pytest.mark.parametrize(
    "path, root",
    [
        ("/sitemap.xml", "<sitemapindex"),
        ("/sitemap-static.xml", "<urlset"),
        ("/sitemap-categories.xml", "<urlset"),
        ("/sitemap-states.xml", "<urlset"),
        ("/sitemap-posts-1.xml", "<urlset"),
    ],
)
def test_sitemap_documents(client, path, root):
    resp = client.get(path)

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/xml; charset=utf-8"
    assert resp.text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert root in resp.text


def test_posts_pages(client):
    assert client.get("/sitemap-posts-1.xml").text.count("<url>") == 10
    assert client.get("/sitemap-posts-2.xml").text.count("<url>") == 5
    assert client.get("/sitemap-posts-3.xml").status_code == 404


def test_posts_page_zero_is_bad_request(client):
    resp = client.get("/sitemap-posts-0.xml")

    assert resp.status_code == 400
    assert resp.json()["error"] == "INVALID_REQUEST"


def test_generation_errors_map_to_status(client, generator):
    class BrokenSource(StaticTablesDataSource):
        async def get_states(self):
            raise RuntimeError("boom")

    generator.data_source = BrokenSource()
    resp = client.get("/sitemap-states.xml")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "GENERATION_FAILED"
    assert "boom" in body["detail"]


def test_admin_requires_token(client):
    assert client.get("/admin/sitemap-config").status_code == 401
    assert client.get("/admin/sitemap-config", headers={"Authorization": "Bearer nope"}).status_code == 403


def test_admin_without_server_token_is_server_error(client, monkeypatch):
    monkeypatch.delenv("API_BEARER_TOKEN")

    resp = client.get("/admin/sitemap-config", headers=_headers())

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Server missing API_BEARER_TOKEN"


def test_admin_reads_and_updates_config(client):
    resp = client.get("/admin/sitemap-config", headers=_headers())
    assert resp.status_code == 200
    assert resp.json()["base_url"] == "https://qbuyse.com"

    resp = client.patch("/admin/sitemap-config", headers=_headers(), json={"base_url": "https://x.com/"})
    assert resp.status_code == 200
    assert resp.json()["base_url"] == "https://x.com"
    assert "https://x.com/sitemap-static.xml" in client.get("/sitemap.xml").text


def test_admin_rejects_invalid_config(client):
    resp = client.patch("/admin/sitemap-config", headers=_headers(), json={"max_urls_per_sitemap": 0})

    assert resp.status_code == 400
    assert "Max URLs per sitemap must be greater than 0" in resp.json()["detail"]
    assert client.get("/admin/sitemap-config", headers=_headers()).json()["max_urls_per_sitemap"] == 10


def test_admin_metadata(client):
    resp = client.get("/admin/sitemap-metadata/posts", headers=_headers())

    assert resp.status_code == 200
    body = resp.json()
    assert body["sitemap_type"] == "posts"
    assert body["url_count"] == 15
    assert body["max_urls_per_sitemap"] == 10

    assert client.get("/admin/sitemap-metadata/videos", headers=_headers()).status_code == 404


def test_admin_clears_cache(client):
    client.get("/sitemap.xml")
    client.get("/sitemap-static.xml")

    resp = client.post("/admin/sitemap-cache/clear", headers=_headers())

    assert resp.status_code == 200
    assert resp.json() == {"cleared": 2}


def test_admin_config_update_clears_cache(client, generator):
    client.get("/sitemap-static.xml")
    assert len(generator.cache._items) == 1

    resp = client.patch("/admin/sitemap-config", headers=_headers(), json={"cache_expiry_minutes": 5})

    assert resp.status_code == 200
    assert resp.json()["cache_expiry_minutes"] == 5
    assert generator.cache._items == {}


def test_admin_metadata_source_failure(client, generator):
    class BrokenSource(StaticTablesDataSource):
        async def get_states(self):
            raise RuntimeError("boom")

    generator.data_source = BrokenSource()
    resp = client.get("/admin/sitemap-metadata/states", headers=_headers())

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "GENERATION_FAILED"
    assert "boom" in body["detail"]
