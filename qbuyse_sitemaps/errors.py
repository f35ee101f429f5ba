from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, TypeVar

T = TypeVar("T")


class SitemapErrorType(str, Enum):
    GENERATION_FAILED = "GENERATION_FAILED"
    CACHE_ERROR = "CACHE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class SitemapError(Exception):
    """Raised for every failure surfaced by the sitemap service."""

    def __init__(self, error_type: SitemapErrorType, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"SitemapError({self.error_type.value}, {self.message!r}, {self.status_code})"


def configuration_error(errors: list[str]) -> SitemapError:
    return SitemapError(
        SitemapErrorType.CONFIGURATION_ERROR,
        f"Sitemap configuration error: {', '.join(errors)}",
        500,
    )


def invalid_request(message: str) -> SitemapError:
    return SitemapError(SitemapErrorType.INVALID_REQUEST, message, 400)


async def with_timeout(
    operation: Awaitable[T],
    timeout_seconds: float,
    message: str = "Operation timed out",
) -> T:
    """
    Await `operation` for at most `timeout_seconds`.

    On expiry the operation is cancelled (not just abandoned) and a
    TIMEOUT_ERROR is raised.
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise SitemapError(SitemapErrorType.TIMEOUT_ERROR, message, 504) from exc
