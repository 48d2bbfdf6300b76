"""
Unit tests for cursor pagination.
"""

import pytest
from unittest.mock import AsyncMock

from service_gamepasses.app.aggregation.pagination import collect_pages
from shared.errors import PaginationLimitError, UpstreamFailureError


def _pages(*pages):
    """Build an AsyncMock returning ``pages`` in order as (items, cursor)."""
    return AsyncMock(side_effect=list(pages))


class TestCollectPages:
    """Test cases for collect_pages."""

    @pytest.mark.asyncio
    async def test_single_page(self):
        """Test a listing that ends on the first page."""
        fetch = _pages((["a", "b"], None))

        result = await collect_pages(fetch)

        assert result == ["a", "b"]
        fetch.assert_awaited_once_with("")

    @pytest.mark.asyncio
    async def test_follows_cursor_in_order(self):
        """Test items are concatenated in page order and cursors are forwarded."""
        fetch = _pages((["a"], "c1"), (["b", "c"], "c2"), (["d"], ""))

        result = await collect_pages(fetch)

        assert result == ["a", "b", "c", "d"]
        assert [call.args[0] for call in fetch.await_args_list] == ["", "c1", "c2"]

    @pytest.mark.asyncio
    async def test_empty_pages_do_not_stop_walk(self):
        """Test an empty page with a cursor keeps paginating."""
        fetch = _pages(([], "next"), (["a"], None))

        result = await collect_pages(fetch)

        assert result == ["a"]
        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_error_propagates(self):
        """Test fetch errors abort the walk unchanged."""
        error = UpstreamFailureError(details={"endpoint": "game_passes"})
        fetch = _pages((["a"], "c1"), error)

        with pytest.raises(UpstreamFailureError) as exc_info:
            await collect_pages(fetch)

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_max_pages_cap(self):
        """Test a listing that never ends is cut off with an error."""
        fetch = AsyncMock(return_value=(["x"], "again"))

        with pytest.raises(PaginationLimitError) as exc_info:
            await collect_pages(fetch, max_pages=3)

        assert fetch.await_count == 3
        assert exc_info.value.max_pages == 3
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_max_pages_exact_fit(self):
        """Test a listing that ends exactly at the cap is returned whole."""
        fetch = _pages((["a"], "c1"), (["b"], None))

        result = await collect_pages(fetch, max_pages=2)

        assert result == ["a", "b"]
