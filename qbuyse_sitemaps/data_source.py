from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from .constants import INDIAN_STATES, SITEMAP_CATEGORIES, STATIC_PAGES
from .db import get_sessionmaker
from .db_models import Post
from .errors import SitemapError, SitemapErrorType
from .models import CategoryInfo, PostInfo, StateInfo, StaticPageInfo

logger = logging.getLogger(__name__)


class SitemapDataSource(ABC):
    """
    Read-only supplier of everything the generator turns into URLs.

    Posts are returned newest first; `get_posts` pages by offset/limit and
    must only return listings that have a creation timestamp.
    """

    async def get_static_pages(self) -> List[StaticPageInfo]:
        return list(STATIC_PAGES)

    async def get_categories(self) -> List[CategoryInfo]:
        return list(SITEMAP_CATEGORIES)

    async def get_states(self) -> List[StateInfo]:
        return list(INDIAN_STATES)

    @abstractmethod
    async def count_posts(self) -> int:
        ...

    @abstractmethod
    async def get_posts(self, offset: int, limit: int) -> List[PostInfo]:
        ...


class StaticTablesDataSource(SitemapDataSource):
    """Reference tables plus an in-memory list of posts."""

    def __init__(self, posts: Iterable[PostInfo] | None = None) -> None:
        self._posts: List[PostInfo] = sorted(
            posts or [], key=lambda p: (p.created_at, p.id), reverse=True
        )

    async def count_posts(self) -> int:
        return len(self._posts)

    async def get_posts(self, offset: int, limit: int) -> List[PostInfo]:
        if limit <= 0:
            return []
        return self._posts[max(offset, 0) : max(offset, 0) + limit]


def rows_to_posts(rows: Sequence[Any]) -> List[PostInfo]:
    out: List[PostInfo] = []
    for row in rows:
        if row.created_at is None:
            continue
        out.append(
            PostInfo(
                id=str(row.id),
                created_at=row.created_at,
                state=row.state or None,
                category=row.category or None,
            )
        )
    return out


def _database_error(action: str, exc: Exception) -> SitemapError:
    return SitemapError(SitemapErrorType.DATABASE_ERROR, f"Failed to {action}: {exc}", 503)


class PostgresDataSource(SitemapDataSource):
    """Queries listings straight from the hosted backend's Postgres database."""

    def __init__(self, session_factory=None) -> None:
        self._session_factory = session_factory

    def _sessions(self):
        if self._session_factory is None:
            self._session_factory = get_sessionmaker()
        return self._session_factory

    async def count_posts(self) -> int:
        stmt = select(func.count()).select_from(Post).where(Post.created_at.is_not(None))
        try:
            async with self._sessions()() as session:
                total = (await session.execute(stmt)).scalar_one()
        except SQLAlchemyError as exc:
            logger.exception("sitemap_posts_count_failed err=%s", exc)
            raise _database_error("count posts", exc) from exc
        return int(total or 0)

    async def get_posts(self, offset: int, limit: int) -> List[PostInfo]:
        if limit <= 0:
            return []
        stmt = (
            select(Post.id, Post.created_at, Post.state, Post.category)
            .where(Post.created_at.is_not(None))
            .order_by(Post.created_at.desc(), Post.id.desc())
            .offset(max(offset, 0))
            .limit(limit)
        )
        try:
            async with self._sessions()() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            logger.exception("sitemap_posts_query_failed offset=%s limit=%s err=%s", offset, limit, exc)
            raise _database_error("query posts", exc) from exc
        logger.debug("sitemap_posts_query_ok offset=%s limit=%s rows=%s", offset, limit, len(rows))
        return rows_to_posts(rows)
