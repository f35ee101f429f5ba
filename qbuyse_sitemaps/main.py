from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from .auth import require_bearer
from .cache import RedisSitemapCache
from .constants import CONTENT_TYPE
from .db import dispose_engine
from .errors import SitemapError, SitemapErrorType
from .generator import SITEMAP_TYPES, SitemapGeneratorService, generator_from_env
from .logging_utils import configure_logging
from .models import SitemapConfigUpdate

load_dotenv()
configure_logging()

logger = logging.getLogger(__name__)

_generator: SitemapGeneratorService | None = None


def get_generator() -> SitemapGeneratorService:
    global _generator
    if _generator is None:
        _generator = generator_from_env()
    return _generator


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _generator is not None and isinstance(_generator.cache, RedisSitemapCache):
        await _generator.cache.close()
    await dispose_engine()


app = FastAPI(lifespan=lifespan)


@app.exception_handler(SitemapError)
async def sitemap_error_handler(request: Request, exc: SitemapError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_type.value, "detail": exc.message},
    )


def _xml(body: str) -> Response:
    return Response(content=body, media_type=CONTENT_TYPE)


@app.get("/healthz")
async def healthz():
    return {"ok": True}


@app.get("/sitemap.xml")
async def sitemap_index(generator: SitemapGeneratorService = Depends(get_generator)):
    return _xml(await generator.generate_sitemap_index())


@app.get("/sitemap-static.xml")
async def sitemap_static(generator: SitemapGeneratorService = Depends(get_generator)):
    return _xml(await generator.generate_static_sitemap())


@app.get("/sitemap-categories.xml")
async def sitemap_categories(generator: SitemapGeneratorService = Depends(get_generator)):
    return _xml(await generator.generate_categories_sitemap())


@app.get("/sitemap-states.xml")
async def sitemap_states(generator: SitemapGeneratorService = Depends(get_generator)):
    return _xml(await generator.generate_states_sitemap())


@app.get("/sitemap-posts-{page}.xml")
async def sitemap_posts(page: int, generator: SitemapGeneratorService = Depends(get_generator)):
    if page > 1 and page > await generator.count_posts_pages():
        raise HTTPException(status_code=404, detail=f"Posts sitemap page {page} not found")
    return _xml(await generator.generate_posts_sitemap(page))


# -------------------------
# Admin
# -------------------------
@app.get("/admin/sitemap-config", dependencies=[Depends(require_bearer)])
async def read_config(generator: SitemapGeneratorService = Depends(get_generator)):
    return generator.config.model_dump()


@app.patch("/admin/sitemap-config", dependencies=[Depends(require_bearer)])
async def patch_config(
    payload: SitemapConfigUpdate,
    generator: SitemapGeneratorService = Depends(get_generator),
):
    try:
        config = await generator.apply_config_update(**payload.model_dump(exclude_none=True))
    except SitemapError as exc:
        if exc.error_type != SitemapErrorType.CONFIGURATION_ERROR:
            raise
        raise HTTPException(status_code=400, detail=exc.message) from exc
    return config.model_dump()


@app.get("/admin/sitemap-metadata/{sitemap_type}", dependencies=[Depends(require_bearer)])
async def sitemap_metadata(sitemap_type: str, generator: SitemapGeneratorService = Depends(get_generator)):
    if sitemap_type not in SITEMAP_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown sitemap type: {sitemap_type}")
    url_count = await generator.count_urls(sitemap_type)
    return generator.get_sitemap_metadata(sitemap_type, url_count).model_dump()


@app.post("/admin/sitemap-cache/clear", dependencies=[Depends(require_bearer)])
async def clear_cache(generator: SitemapGeneratorService = Depends(get_generator)):
    if generator.cache is None:
        return {"cleared": 0}
    cleared = await generator.cache.clear()
    logger.info("sitemap_cache_cleared keys=%s", cleared)
    return {"cleared": cleared}
