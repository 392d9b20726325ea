"""Incremental "load more" pagination bound to one result view.

A controller tracks how many pages of its view have been consumed and
whether more may exist. It does not know how pages are produced: a
``PageSource`` either calls the API per page (live) or slices an
already-fetched pool (client-side paging, used for category results).

States:
  idle                   → ready; ``load_more`` fetches the next page
  loading                → a fetch is in flight; further triggers are no-ops
  search_exit_requested  → a search view asked to abandon the search;
                           the owning view reloads the unfiltered feed
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from .config import settings

logger = logging.getLogger(__name__)

LOAD_MORE_LABEL = "Load More"
EXPLORE_MORE_LABEL = "Explore More"
LOADING_LABEL = "Loading..."


class ControllerState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SEARCH_EXIT_REQUESTED = "search_exit_requested"


@dataclass(frozen=True)
class PaginationState:
    page: int
    displayed: int
    exhausted: bool
    search_active: bool
    state: ControllerState

    @property
    def loading(self) -> bool:
        return self.state is ControllerState.LOADING


class PageSource(ABC):
    @abstractmethod
    async def fetch(self, page: int, page_size: int) -> Sequence:
        """Return the items of ``page`` (1-based)."""

    @abstractmethod
    def exhausted_after(self, page: int, received: int, page_size: int) -> bool:
        """Whether nothing is left once ``page`` returned ``received`` items."""


class LivePageSource(PageSource):
    """Each page is a fresh API call. A short page means the upstream ran out."""

    def __init__(self, fetch_page: Callable[[int, int], Awaitable[Sequence]]) -> None:
        self._fetch_page = fetch_page

    async def fetch(self, page: int, page_size: int) -> Sequence:
        return await self._fetch_page(page, page_size)

    def exhausted_after(self, page: int, received: int, page_size: int) -> bool:
        return received < page_size


class PooledSource(PageSource):
    """Reveals slices of a pre-fetched pool; never touches the network."""

    def __init__(self, items: Sequence) -> None:
        self._items = list(items)

    def __len__(self) -> int:
        return len(self._items)

    async def fetch(self, page: int, page_size: int) -> Sequence:
        start = (page - 1) * page_size
        return self._items[start:start + page_size]

    def head(self, page_size: int) -> list:
        return self._items[:page_size]

    def exhausted_after(self, page: int, received: int, page_size: int) -> bool:
        return page * page_size >= len(self._items)


class PaginationController:
    """Owns the page counter and exhaustion flag of a single view.

    Create one per view and drop it when the view changes; never share
    one across views.
    """

    def __init__(
        self,
        source: PageSource,
        page_size: int | None = None,
        *,
        search_active: bool = False,
    ) -> None:
        self._source = source
        self.page_size = page_size or settings.page_size
        self.search_active = search_active
        self.page = 1
        self.displayed = 0
        self.exhausted = False
        self.state = ControllerState.IDLE

    @property
    def exit_requested(self) -> bool:
        return self.state is ControllerState.SEARCH_EXIT_REQUESTED

    @property
    def has_more(self) -> bool:
        if self.search_active:
            return True
        return not self.exhausted

    @property
    def cta_label(self) -> str:
        if self.search_active:
            return EXPLORE_MORE_LABEL
        if self.state is ControllerState.LOADING:
            return LOADING_LABEL
        return LOAD_MORE_LABEL

    def prime(self, items: Sequence) -> None:
        """Record the first page, already fetched and shown by the view."""
        self.page = 1
        self.displayed = len(items)
        self.exhausted = self._source.exhausted_after(1, len(items), self.page_size)

    async def load_more(self) -> list:
        """Reveal the next increment.

        Returns the new items, or an empty list when the call was a no-op
        (already loading, exhausted, or a search view requesting exit).
        On failure the state is left exactly as it was and the error
        propagates, so retrying is safe.
        """
        if self.state is not ControllerState.IDLE:
            return []
        if self.search_active:
            self.state = ControllerState.SEARCH_EXIT_REQUESTED
            logger.debug("Search view asked to explore more; exit requested")
            return []
        if self.exhausted:
            return []

        next_page = self.page + 1
        self.state = ControllerState.LOADING
        try:
            items = list(await self._source.fetch(next_page, self.page_size))
        finally:
            self.state = ControllerState.IDLE

        self.page = next_page
        self.displayed += len(items)
        self.exhausted = self._source.exhausted_after(next_page, len(items), self.page_size)
        logger.debug(
            "Loaded page %d (%d items, %d shown, exhausted=%s)",
            next_page, len(items), self.displayed, self.exhausted,
        )
        return items

    def reset(self) -> None:
        self.page = 1
        self.displayed = 0
        self.exhausted = False
        self.state = ControllerState.IDLE

    def snapshot(self) -> PaginationState:
        return PaginationState(
            page=self.page,
            displayed=self.displayed,
            exhausted=self.exhausted,
            search_active=self.search_active,
            state=self.state,
        )
