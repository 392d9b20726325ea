"""The listings view: normal feed, category feed, fallback feed or cached search.

Exactly one view is active at a time. Opening a view replaces the
pagination controller; results of an open that finishes after a newer
one started are discarded (generation counter).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from ..categories import category_name, is_category
from ..config import settings
from ..gateway import SpiritBidError
from ..pagination import LivePageSource, PaginationController, PooledSource
from ..schemas import Listing, SearchMeta, SearchResults
from .aggregator import CategoryAggregator, CategoryStatus

logger = logging.getLogger(__name__)

FALLBACK_ERROR_NOTICE = "Failed to load listings. Please try again later."


class ViewKind(str, Enum):
    FEED = "feed"
    CATEGORY = "category"
    FALLBACK = "fallback"
    SEARCH = "search"


@dataclass
class FeedSnapshot:
    kind: ViewKind
    listings: list[Listing]
    new_items: int
    page: int
    has_more: bool
    cta_label: str
    category: str | None = None
    category_name: str | None = None
    query: str | None = None
    search_meta: SearchMeta | None = None
    notice: str | None = None
    reload_required: bool = False


@dataclass
class SearchCache:
    """Last submitted search, kept so the listings view can show it again."""

    query: str | None = None
    results: SearchResults | None = None

    def store(self, query: str, results: SearchResults) -> None:
        self.query = query
        self.results = results

    def store_failure(self, query: str) -> None:
        self.query = query
        self.results = None

    def clear(self) -> None:
        self.query = None
        self.results = None


@dataclass
class _View:
    kind: ViewKind
    controller: PaginationController
    listings: list[Listing] = field(default_factory=list)
    category: str | None = None
    query: str | None = None
    search_meta: SearchMeta | None = None
    notice: str | None = None


class ListingFeed:
    """Drives the listings page.

    ``renderer``, when given, is called as ``renderer(listings, container,
    append=...)`` whenever visible listings change.
    """

    def __init__(
        self,
        client,
        search_engine,
        aggregator: CategoryAggregator | None = None,
        *,
        page_size: int | None = None,
        renderer: Callable[..., None] | None = None,
        container: str = "listings",
    ) -> None:
        self._client = client
        self._search = search_engine
        self._aggregator = aggregator or CategoryAggregator(client)
        self._page_size = page_size or settings.page_size
        self._renderer = renderer
        self._container = container
        self._generation = 0
        self._view: _View | None = None
        self.search_cache = SearchCache()

    # --- generation guard ---

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Discarding stale result (generation %d, current %d)", generation, self._generation)
            return False
        return True

    # --- view plumbing ---

    @property
    def kind(self) -> ViewKind | None:
        return self._view.kind if self._view else None

    @property
    def controller(self) -> PaginationController | None:
        return self._view.controller if self._view else None

    async def _fetch_active_page(self, page: int, page_size: int) -> list[Listing]:
        result = await self._client.fetch_listings(page_size, page, active=True)
        return result.data

    def _live_controller(self) -> PaginationController:
        return PaginationController(LivePageSource(self._fetch_active_page), self._page_size)

    def _install(self, view: _View) -> FeedSnapshot:
        self._view = view
        self._render(view.listings, append=False)
        return self.snapshot(new_items=len(view.listings))

    def _render(self, listings: list[Listing], *, append: bool) -> None:
        if self._renderer is not None:
            self._renderer(listings, self._container, append=append)

    def snapshot(self, new_items: int = 0) -> FeedSnapshot | None:
        view = self._view
        if view is None:
            return None
        controller = view.controller
        return FeedSnapshot(
            kind=view.kind,
            listings=list(view.listings),
            new_items=new_items,
            page=controller.page,
            has_more=controller.has_more,
            cta_label=controller.cta_label,
            category=view.category,
            category_name=category_name(view.category) if view.category else None,
            query=view.query,
            search_meta=view.search_meta,
            notice=view.notice,
        )

    # --- views ---

    async def open_feed(self) -> FeedSnapshot | None:
        """First page of active listings, paginated live against the API."""
        generation = self._begin()
        try:
            page = await self._client.fetch_listings(self._page_size, 1, active=True)
        except SpiritBidError:
            if not self._is_current(generation):
                return None
            raise
        if not self._is_current(generation):
            return None
        controller = self._live_controller()
        controller.prime(page.data)
        return self._install(_View(ViewKind.FEED, controller, list(page.data)))

    async def open_category(self, category: str | None) -> FeedSnapshot | None:
        """Category feed; unknown or missing categories open the normal feed."""
        if not is_category(category):
            return await self.open_feed()

        generation = self._begin()
        try:
            result = await self._aggregator.load(category)
        except SpiritBidError:
            if not self._is_current(generation):
                return None
            raise
        if not self._is_current(generation):
            return None

        if result.status is CategoryStatus.OK:
            source = PooledSource(result.listings)
            controller = PaginationController(source, self._page_size)
            first = source.head(self._page_size)
            controller.prime(first)
            return self._install(_View(ViewKind.CATEGORY, controller, first, category=category))

        # Nothing in this category: show unfiltered listings, labelled as such.
        notice = f"No {result.name} Found"
        if result.fallback_error:
            notice = f"{notice}. {FALLBACK_ERROR_NOTICE}"
        controller = self._live_controller()
        controller.prime(result.fallback)
        return self._install(
            _View(ViewKind.FALLBACK, controller, list(result.fallback), category=category, notice=notice)
        )

    async def open_search(self, query: str | None) -> FeedSnapshot | None:
        """Run a unified search and show it as a single cached batch.

        A blank query drops any cached search and opens the normal feed.
        On failure the query is kept, stale results are dropped and the
        error propagates.
        """
        query = (query or "").strip()
        if not query:
            self.search_cache.clear()
            return await self.open_feed()

        generation = self._begin()
        try:
            results = await self._search.search(query)
        except SpiritBidError:
            if not self._is_current(generation):
                return None
            self.search_cache.store_failure(query)
            raise
        if not self._is_current(generation):
            return None

        self.search_cache.store(query, results)
        return self._show_search(results)

    def restore_search(self) -> FeedSnapshot | None:
        """Show the cached search again without a network call, if there is one."""
        results = self.search_cache.results
        if results is None:
            return None
        self._begin()
        return self._show_search(results)

    def _show_search(self, results: SearchResults) -> FeedSnapshot:
        controller = PaginationController(PooledSource(results.data), self._page_size, search_active=True)
        controller.prime(results.data)
        return self._install(
            _View(
                ViewKind.SEARCH,
                controller,
                list(results.data),
                query=results.query,
                search_meta=results.meta,
            )
        )

    async def exit_search(self) -> FeedSnapshot | None:
        """Abandon the search and reload the unfiltered feed."""
        self.search_cache.clear()
        snapshot = await self.open_feed()
        if snapshot is not None:
            snapshot.reload_required = True
        return snapshot

    async def load_more(self) -> FeedSnapshot | None:
        """Reveal the next increment of the active view.

        With no view open this opens the normal feed. On a search view it
        abandons the search instead of paging deeper.
        """
        view = self._view
        if view is None:
            return await self.open_feed()

        generation = self._generation
        try:
            items = await view.controller.load_more()
        except SpiritBidError:
            if not self._is_current(generation):
                return None
            raise
        if view.controller.exit_requested:
            return await self.exit_search()
        if not self._is_current(generation):
            return None

        view.listings.extend(items)
        if items:
            self._render(items, append=True)
        return self.snapshot(new_items=len(items))
