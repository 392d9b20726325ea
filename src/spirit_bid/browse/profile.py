"""Profile page tabs: my bids, my listings, my wins."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from ..config import settings
from ..gateway import AuthRequiredError, SpiritBidError
from ..pagination import PageSource, PaginationController
from ..schemas import PageMeta

logger = logging.getLogger(__name__)


class ProfileTab(str, Enum):
    BIDS = "bids"
    LISTINGS = "listings"
    WINS = "wins"


class ProfilePageSource(PageSource):
    """Live pages of one profile collection.

    Exhaustion follows the envelope's ``currentPage``/``pageCount`` when the
    API sends them, else a short page.
    """

    def __init__(self, fetch: Callable[[int, int], Awaitable]) -> None:
        self._fetch = fetch
        self._meta: PageMeta | None = None

    async def fetch(self, page: int, page_size: int) -> Sequence:
        result = await self._fetch(page_size, page)
        self._meta = result.meta
        return result.data

    def exhausted_after(self, page: int, received: int, page_size: int) -> bool:
        meta = self._meta
        if meta is not None and meta.current_page is not None and meta.page_count is not None:
            return meta.current_page >= meta.page_count
        return received < page_size


@dataclass
class TabSnapshot:
    tab: ProfileTab
    items: list
    new_items: int
    page: int
    has_more: bool


class ProfileTabs:
    """One controller per tab; switching tabs resets the target tab's paging."""

    def __init__(self, client, session, page_size: int | None = None) -> None:
        self._client = client
        self._session = session
        self._page_size = page_size or settings.page_size
        self._generation = 0
        self.active: ProfileTab | None = None
        self._items: dict[ProfileTab, list] = {tab: [] for tab in ProfileTab}
        self._sources = {tab: ProfilePageSource(self._fetcher(tab)) for tab in ProfileTab}
        self._controllers = {
            tab: PaginationController(self._sources[tab], self._page_size) for tab in ProfileTab
        }

    def _fetcher(self, tab: ProfileTab) -> Callable[[int, int], Awaitable]:
        async def fetch(limit: int, page: int):
            username = self._username()
            if tab is ProfileTab.BIDS:
                return await self._client.fetch_user_bids(username, limit, page)
            if tab is ProfileTab.WINS:
                return await self._client.fetch_user_wins(username, limit, page)
            return await self._client.fetch_listings_by_user(username, limit, page)

        return fetch

    def _username(self) -> str:
        username = self._session.get_username() if self._session else None
        if not username:
            raise AuthRequiredError("You must be logged in to view your profile")
        return username

    def controller(self, tab: ProfileTab | str) -> PaginationController:
        return self._controllers[ProfileTab(tab)]

    def snapshot(self, new_items: int = 0) -> TabSnapshot | None:
        if self.active is None:
            return None
        controller = self._controllers[self.active]
        return TabSnapshot(
            tab=self.active,
            items=list(self._items[self.active]),
            new_items=new_items,
            page=controller.page,
            has_more=controller.has_more,
        )

    async def open(self) -> TabSnapshot | None:
        """Open the default tab (bids)."""
        return await self.switch(self.active or ProfileTab.BIDS, force=True)

    async def switch(self, tab: ProfileTab | str, *, force: bool = False) -> TabSnapshot | None:
        tab = ProfileTab(tab)
        if tab is self.active and not force:
            return self.snapshot()
        self._username()

        self._generation += 1
        generation = self._generation

        # Tab state is untouched until page 1 arrives.
        try:
            items = list(await self._sources[tab].fetch(1, self._page_size))
        except SpiritBidError:
            if generation != self._generation:
                logger.debug("Discarding stale %s tab failure", tab.value)
                return None
            raise
        if generation != self._generation:
            logger.debug("Discarding stale %s tab result", tab.value)
            return None
        self.active = tab
        controller = self._controllers[tab]
        controller.reset()
        controller.prime(items)
        self._items[tab] = items
        return self.snapshot(new_items=len(items))

    async def load_more(self) -> TabSnapshot | None:
        if self.active is None:
            return await self.open()
        tab = self.active
        generation = self._generation
        try:
            items = await self._controllers[tab].load_more()
        except SpiritBidError:
            if generation != self._generation:
                logger.debug("Discarding stale %s tab failure", tab.value)
                return None
            raise
        if generation != self._generation:
            logger.debug("Discarding stale %s tab page", tab.value)
            return None
        self._items[tab].extend(items)
        return self.snapshot(new_items=len(items))
