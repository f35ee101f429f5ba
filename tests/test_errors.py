import asyncio

import pytest

from qbuyse_sitemaps.errors import SitemapError, SitemapErrorType, with_timeout


def test_with_timeout_returns_result():
    async def quick():
        return "done"

    assert asyncio.run(with_timeout(quick(), 1)) == "done"


def test_with_timeout_raises_and_cancels_operation():
    state = {"cancelled": False}

    async def slow():
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            state["cancelled"] = True
            raise

    with pytest.raises(SitemapError) as exc_info:
        asyncio.run(with_timeout(slow(), 0.05, "took too long"))

    err = exc_info.value
    assert err.error_type == SitemapErrorType.TIMEOUT_ERROR
    assert err.status_code == 504
    assert err.message == "took too long"
    assert state["cancelled"] is True


def test_with_timeout_propagates_operation_errors():
    async def broken():
        raise ValueError("bad input")

    with pytest.raises(ValueError, match="bad input"):
        asyncio.run(with_timeout(broken(), 1))
