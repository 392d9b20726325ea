"""Category feeds built client-side from several pages of active listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..categories import category_name, filter_by_category, is_category
from ..config import settings
from ..gateway import SpiritBidError, ValidationError
from ..schemas import Listing

logger = logging.getLogger(__name__)


class CategoryStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"


@dataclass
class CategoryResult:
    category: str
    status: CategoryStatus
    listings: list[Listing] = field(default_factory=list)
    total_fetched: int = 0
    pages_fetched: int = 0
    page_errors: list[str] = field(default_factory=list)
    # Only set when status is EMPTY: unfiltered active listings, never category matches.
    fallback: list[Listing] = field(default_factory=list)
    fallback_error: str | None = None

    @property
    def name(self) -> str:
        return category_name(self.category)


class CategoryAggregator:
    """Builds "all active listings in category X" from page-at-a-time listing reads.

    The API has no category filter, so up to ``max_pages`` pages of active
    listings are pulled (strictly one after another) and classified locally.
    """

    def __init__(
        self,
        client,
        *,
        page_size: int | None = None,
        max_pages: int | None = None,
        fallback_size: int | None = None,
    ) -> None:
        self._client = client
        self._page_size = page_size or settings.category_page_size
        self._max_pages = max_pages or settings.category_max_pages
        self._fallback_size = fallback_size or settings.page_size

    async def collect(self) -> tuple[list[Listing], int, list[str]]:
        """Accumulate active listings page by page.

        Stops at the page cap, at the first short page, or at the first
        failed page (pages already fetched are kept). A failure on page 1
        propagates since nothing usable was obtained.
        """
        pool: list[Listing] = []
        errors: list[str] = []
        pages = 0
        for page in range(1, self._max_pages + 1):
            try:
                result = await self._client.fetch_listings(self._page_size, page, active=True)
            except SpiritBidError as e:
                if page == 1:
                    raise
                logger.warning("Listing page %d failed, keeping %d listings: %s", page, len(pool), e)
                errors.append(str(e))
                break
            pages += 1
            pool.extend(result.data)
            if len(result.data) < self._page_size:
                break
        return pool, pages, errors

    async def load(self, category: str) -> CategoryResult:
        if not is_category(category):
            raise ValidationError(f"Unknown category: {category}")

        pool, pages, errors = await self.collect()
        matches = filter_by_category(pool, category)
        logger.info("Category %s: found %d listings from %d total", category, len(matches), len(pool))

        result = CategoryResult(
            category=category,
            status=CategoryStatus.OK if matches else CategoryStatus.EMPTY,
            listings=matches,
            total_fetched=len(pool),
            pages_fetched=pages,
            page_errors=errors,
        )
        if matches:
            return result

        try:
            fallback = await self._client.fetch_listings(self._fallback_size, 1, active=True)
            result.fallback = fallback.data
        except SpiritBidError as e:
            logger.warning("Fallback listings for empty category %s failed: %s", category, e)
            result.fallback_error = str(e)
        return result
