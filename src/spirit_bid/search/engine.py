"""Unified search: content search and seller search, merged into one ranked list."""

from __future__ import annotations

import asyncio
import logging

from ..config import settings
from ..gateway import ConnectivityError, NotFoundDuringProbe, SpiritBidError, UpstreamError, ValidationError
from ..schemas import Listing, ListingPage, SearchMeta, SearchResult, SearchResults
from . import SearchUnavailableError

logger = logging.getLogger(__name__)


def case_variants(query: str) -> list[str]:
    """As-is, lower, upper and capitalized forms of ``query``, deduplicated in that order."""
    variants = [
        query,
        query.lower(),
        query.upper(),
        query[:1].upper() + query[1:].lower(),
    ]
    return list(dict.fromkeys(variants))


def _tagged(listing: Listing, match_type: str) -> SearchResult:
    return SearchResult.model_validate({**listing.model_dump(), "match_type": match_type})


def merge_results(query: str, content: list[Listing], user: list[Listing], limit: int) -> SearchResults:
    """Deduplicate by listing id, content results first, then rank.

    A listing found by both facets keeps ``match_type="content"``. The
    merged list is truncated to ``limit`` before sorting: content before
    user, newest first within each group.
    """
    merged: dict[str, SearchResult] = {}
    for listing in content:
        if listing is not None and listing.id:
            merged[listing.id] = _tagged(listing, "content")
    for listing in user:
        if listing is not None and listing.id and listing.id not in merged:
            merged[listing.id] = _tagged(listing, "user")

    combined = list(merged.values())[:limit]
    combined.sort(key=lambda r: (r.match_type != "content", -r.created.timestamp()))

    return SearchResults(
        query=query,
        data=combined,
        meta=SearchMeta(
            total_results=len(combined),
            content_matches=len(content),
            user_matches=len(user),
            is_first_page=True,
            is_last_page=len(combined) < limit,
            has_results=bool(combined),
            page=1,
        ),
    )


class UnifiedSearch:
    """Runs the content and user facets concurrently and merges what settles.

    Either facet may fail without affecting the other; only when both fail
    does the search raise ``SearchUnavailableError``.
    """

    def __init__(self, client, session, limit: int | None = None) -> None:
        self._client = client
        self._session = session
        self._limit = limit or settings.search_limit

    async def search(self, query: str, limit: int | None = None) -> SearchResults:
        query = (query or "").strip()
        if not query:
            raise ValidationError("A search query is required")
        limit = limit or self._limit

        content, user = await asyncio.gather(
            self._content_facet(query, limit),
            self._user_facet(query, limit),
            return_exceptions=True,
        )
        for outcome in (content, user):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        content_failed = isinstance(content, Exception)
        user_failed = isinstance(user, Exception)
        if content_failed:
            logger.warning("Content search failed for '%s': %s", query, content)
        if user_failed:
            logger.warning("User search failed for '%s': %s", query, user)
        if content_failed and user_failed:
            raise SearchUnavailableError(causes=(content, user))

        results = merge_results(
            query,
            [] if content_failed else content,
            [] if user_failed else user,
            limit,
        )
        logger.info(
            "Search '%s': %d results (%d content, %d user)",
            query, results.meta.total_results, results.meta.content_matches, results.meta.user_matches,
        )
        return results

    async def _content_facet(self, query: str, limit: int) -> list[Listing]:
        page = await self._client.search_listings(query, limit, 1)
        return page.data

    async def _probe(self, username: str, limit: int) -> ListingPage:
        try:
            return await self._client.fetch_listings_by_user(username, limit, 1)
        except UpstreamError as e:
            if e.status == 404:
                raise NotFoundDuringProbe(username) from e
            raise

    async def _user_facet(self, query: str, limit: int) -> list[Listing]:
        """Listings whose seller name equals ``query`` (case-insensitive).

        Needs a session; without one this returns empty and sends nothing.
        Case variants are probed in order until the profile endpoint answers
        successfully, even if the exact-name filter then keeps nothing.
        HTTP errors skip to the next variant. If no variant could be tried
        because the API was unreachable every time, the facet fails.
        """
        if not self._session or not self._session.get_token():
            return []

        wanted = query.lower()
        unreachable: ConnectivityError | None = None
        reached = False
        for variant in case_variants(query):
            try:
                page = await self._probe(variant, limit)
            except NotFoundDuringProbe:
                logger.debug("No profile named '%s'", variant)
                reached = True
                continue
            except ConnectivityError as e:
                logger.warning("User search for '%s' could not reach the API: %s", variant, e)
                unreachable = e
                continue
            except SpiritBidError as e:
                logger.warning("User search for '%s' failed: %s", variant, e)
                reached = True
                continue

            matches = [
                listing for listing in page.data
                if listing.seller is not None and listing.seller.name.lower() == wanted
            ]
            logger.debug(
                "Profile '%s' answered with %d listings, %d match '%s'",
                variant, len(page.data), len(matches), query,
            )
            return matches

        if unreachable is not None and not reached:
            raise unreachable
        return []
