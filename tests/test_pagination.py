"""Tests for the load-more pagination controller."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from spirit_bid.gateway import ConnectivityError
from spirit_bid.pagination import (
    ControllerState,
    LivePageSource,
    PaginationController,
    PooledSource,
)


def _live(*results):
    fetch = AsyncMock(side_effect=list(results))
    return fetch, PaginationController(LivePageSource(fetch), page_size=12)


class TestLiveController:
    @pytest.mark.asyncio
    async def test_full_page_advances(self):
        fetch, ctrl = _live(list(range(12)))
        ctrl.prime(list(range(12)))

        items = await ctrl.load_more()

        assert len(items) == 12
        fetch.assert_awaited_once_with(2, 12)
        assert ctrl.page == 2
        assert ctrl.displayed == 24
        assert not ctrl.exhausted
        assert ctrl.has_more

    @pytest.mark.asyncio
    async def test_short_page_exhausts(self):
        fetch, ctrl = _live(list(range(5)))
        ctrl.prime(list(range(12)))

        await ctrl.load_more()
        assert ctrl.exhausted
        assert not ctrl.has_more

        assert await ctrl.load_more() == []
        assert fetch.await_count == 1
        assert ctrl.page == 2

    def test_short_first_page_exhausts_immediately(self):
        _, ctrl = _live()
        ctrl.prime([1, 2, 3])
        assert ctrl.exhausted

    @pytest.mark.asyncio
    async def test_failure_leaves_state_untouched(self):
        fetch, ctrl = _live(ConnectivityError("offline"), list(range(12)))
        ctrl.prime(list(range(12)))
        before = ctrl.snapshot()

        with pytest.raises(ConnectivityError):
            await ctrl.load_more()

        assert ctrl.snapshot() == before
        assert ctrl.state is ControllerState.IDLE

        await ctrl.load_more()
        assert ctrl.page == 2
        assert [c.args for c in fetch.await_args_list] == [(2, 12), (2, 12)]

    @pytest.mark.asyncio
    async def test_trigger_while_loading_is_ignored(self):
        release = asyncio.Event()

        async def slow(page, size):
            await release.wait()
            return list(range(size))

        fetch = AsyncMock(side_effect=slow)
        ctrl = PaginationController(LivePageSource(fetch), page_size=12)
        ctrl.prime(list(range(12)))

        first = asyncio.create_task(ctrl.load_more())
        await asyncio.sleep(0)
        assert ctrl.state is ControllerState.LOADING
        assert ctrl.cta_label == "Loading..."

        assert await ctrl.load_more() == []
        release.set()
        await first

        assert fetch.await_count == 1
        assert ctrl.page == 2
        assert ctrl.cta_label == "Load More"

    @pytest.mark.asyncio
    async def test_reset_is_idempotent(self):
        _, ctrl = _live(list(range(3)))
        ctrl.prime(list(range(12)))
        await ctrl.load_more()

        ctrl.reset()
        once = ctrl.snapshot()
        ctrl.reset()

        assert ctrl.snapshot() == once
        assert once.page == 1
        assert once.displayed == 0
        assert not once.exhausted


class TestPooledController:
    @pytest.mark.asyncio
    async def test_reveals_pool_in_slices(self):
        source = PooledSource(range(30))
        ctrl = PaginationController(source, page_size=12)
        ctrl.prime(source.head(12))
        assert not ctrl.exhausted

        second = await ctrl.load_more()
        assert second == list(range(12, 24))
        assert not ctrl.exhausted

        third = await ctrl.load_more()
        assert third == list(range(24, 30))
        assert ctrl.exhausted
        assert ctrl.displayed == 30

    def test_exact_multiple_is_exhausted_on_last_slice(self):
        source = PooledSource(range(12))
        ctrl = PaginationController(source, page_size=12)
        ctrl.prime(source.head(12))
        assert ctrl.exhausted
        assert len(source) == 12


class TestSearchActive:
    @pytest.mark.asyncio
    async def test_load_more_requests_exit(self):
        fetch = AsyncMock()
        ctrl = PaginationController(LivePageSource(fetch), page_size=12, search_active=True)
        ctrl.prime([1])

        assert ctrl.cta_label == "Explore More"
        assert ctrl.has_more

        assert await ctrl.load_more() == []
        assert ctrl.exit_requested
        assert ctrl.state is ControllerState.SEARCH_EXIT_REQUESTED
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exit_request_is_sticky(self):
        ctrl = PaginationController(PooledSource([]), page_size=12, search_active=True)
        await ctrl.load_more()
        await ctrl.load_more()
        assert ctrl.exit_requested
