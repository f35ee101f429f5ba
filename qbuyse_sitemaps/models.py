from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


ChangeFreq = Literal["always", "hourly", "daily", "weekly", "monthly", "yearly", "never"]


# -------------------------
# Sitemap documents
# -------------------------
class SitemapEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    url: str
    lastmod: str
    changefreq: ChangeFreq = "weekly"
    priority: float = Field(default=0.5, ge=0.0, le=1.0)


class SitemapIndexItem(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    loc: str
    lastmod: str


class SitemapIndex(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sitemaps: List[SitemapIndexItem] = Field(default_factory=list)


class SitemapMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sitemap_type: str
    last_modified: str
    url_count: int
    base_url: str
    max_urls_per_sitemap: int


# -------------------------
# Configuration
# -------------------------
class SitemapConfig(BaseModel):
    # Values are checked by SitemapConfigService.validate_config so that all
    # problems can be reported together.
    model_config = ConfigDict(extra="forbid")
    base_url: str = ""
    max_urls_per_sitemap: int = 0
    cache_expiry_minutes: int = 0


class ConfigValidation(BaseModel):
    model_config = ConfigDict(extra="forbid")
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class SitemapConfigUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")
    base_url: Optional[str] = None
    max_urls_per_sitemap: Optional[int] = None
    cache_expiry_minutes: Optional[int] = None


# -------------------------
# Reference data
# -------------------------
class StateInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    name: str
    code: str
    slug: str


class CategoryInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    id: str
    name: str
    slug: str


class StaticPageInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    url: str
    priority: float = Field(ge=0.0, le=1.0)
    changefreq: ChangeFreq


class PostInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    state: Optional[str] = None
    category: Optional[str] = None
