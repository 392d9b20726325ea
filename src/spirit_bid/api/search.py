"""Unified search endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from ..browse.feed import ListingFeed
from ..gateway import SpiritBidError
from ..schemas import FeedResponse
from . import http_error
from .listings import feed_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/search", tags=["search"])


def _get_feed() -> ListingFeed:
    from ..main import app_state
    return app_state["feed"]


@router.get("", response_model=FeedResponse)
async def search_listings(q: str = Query("", description="Search query; blank reopens the feed")):
    feed = _get_feed()
    try:
        snapshot = await feed.open_search(q)
    except SpiritBidError as e:
        logger.warning("Search failed for '%s': %s", q, e)
        raise http_error(e)
    return feed_response(snapshot)


@router.get("/cached", response_model=FeedResponse)
def cached_search():
    snapshot = _get_feed().restore_search()
    if snapshot is None:
        raise HTTPException(404, "No cached search")
    return feed_response(snapshot)


@router.post("/exit", response_model=FeedResponse)
async def exit_search():
    feed = _get_feed()
    try:
        snapshot = await feed.exit_search()
    except SpiritBidError as e:
        raise http_error(e)
    return feed_response(snapshot)
