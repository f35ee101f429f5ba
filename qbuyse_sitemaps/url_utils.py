from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Union
from urllib.parse import urlsplit

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_DASH_RE = re.compile(r"[\s_-]+", re.ASCII)
_VALID_SCHEMES = ("http", "https")

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def generate_slug(text: str) -> str:
    """Turn a display name into a lowercase, hyphen-delimited URL slug."""
    slug = (text or "").lower().strip()
    slug = _SLUG_STRIP_RE.sub("", slug)
    slug = _SLUG_DASH_RE.sub("-", slug)
    return slug.strip("-")


def is_valid_url(url: str) -> bool:
    if not url:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in _VALID_SCHEMES and bool(parts.hostname)


def ensure_protocol(url: str) -> str:
    if not url.startswith("http://") and not url.startswith("https://"):
        return f"https://{url}"
    return url


def join_url_paths(base: str, *paths: str) -> str:
    result = base.rstrip("/")
    for path in paths:
        clean = (path or "").strip("/")
        if clean:
            result += f"/{clean}"
    return result


def format_sitemap_date(value: Union[date, datetime, str]) -> str:
    """
    Normalize a date, datetime or ISO 8601 string to the YYYY-MM-DD form
    used by <lastmod>. Aware datetimes are converted to UTC first.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    return value.isoformat()


def escape_xml(text: str) -> str:
    out = str(text)
    for raw, entity in _XML_ESCAPES:
        out = out.replace(raw, entity)
    return out


def calculate_pagination(total_items: int, items_per_page: int) -> Dict[str, Any]:
    if items_per_page <= 0:
        raise ValueError("items_per_page must be greater than 0")
    total_pages = math.ceil(max(total_items, 0) / items_per_page)
    return {
        "total_pages": total_pages,
        "items_per_page": items_per_page,
        "total_items": total_items,
        "has_multiple_pages": total_pages > 1,
    }


def generate_cache_key(sitemap_type: str, *params: Any) -> str:
    key = ":".join([sitemap_type, *[str(p) for p in params]])
    return f"sitemap:{key}"
