"""Listing feed, listing detail, listing CRUD and bidding endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Response

from ..bidding import BidService
from ..browse.feed import FeedSnapshot, ListingFeed
from ..gateway import SpiritBidError
from ..gateway.client import AuctionClient
from ..schemas import BidCreate, FeedResponse, Listing, ListingCreate, ListingUpdate
from . import http_error

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/listings", tags=["listings"])


def _get_client() -> AuctionClient:
    from ..main import app_state
    return app_state["client"]


def _get_feed() -> ListingFeed:
    from ..main import app_state
    return app_state["feed"]


def _get_bids() -> BidService:
    from ..main import app_state
    return app_state["bids"]


def feed_response(snapshot: FeedSnapshot | None) -> FeedResponse:
    if snapshot is None:
        # A newer view replaced this one while it was loading.
        raise HTTPException(409, "The listing view changed while loading; please retry")
    return FeedResponse(
        kind=snapshot.kind.value,
        listings=snapshot.listings,
        new_items=snapshot.new_items,
        page=snapshot.page,
        has_more=snapshot.has_more,
        cta_label=snapshot.cta_label,
        category=snapshot.category,
        category_name=snapshot.category_name,
        query=snapshot.query,
        search_meta=snapshot.search_meta,
        notice=snapshot.notice,
        reload_required=snapshot.reload_required,
    )


@router.get("", response_model=FeedResponse)
async def open_listings(category: str | None = Query(None, description="Category key, or 'all'")):
    feed = _get_feed()
    try:
        snapshot = await feed.open_category(category)
    except SpiritBidError as e:
        logger.warning("Opening listings (category=%s) failed: %s", category, e)
        raise http_error(e)
    return feed_response(snapshot)


@router.post("/more", response_model=FeedResponse)
async def load_more_listings():
    feed = _get_feed()
    try:
        snapshot = await feed.load_more()
    except SpiritBidError as e:
        logger.warning("Load more failed: %s", e)
        raise http_error(e)
    return feed_response(snapshot)


@router.get("/{listing_id}", response_model=Listing)
async def get_listing(listing_id: str):
    try:
        return await _get_client().fetch_listing(listing_id)
    except SpiritBidError as e:
        raise http_error(e)


@router.post("", response_model=Listing, status_code=201)
async def create_listing(body: ListingCreate):
    try:
        listing = await _get_client().create_listing(body)
    except SpiritBidError as e:
        logger.warning("Create listing failed: %s", e)
        raise http_error(e)
    logger.info("Created listing %s", listing.id)
    return listing


@router.put("/{listing_id}", response_model=Listing)
async def update_listing(listing_id: str, body: ListingUpdate):
    try:
        return await _get_client().update_listing(listing_id, body)
    except SpiritBidError as e:
        logger.warning("Update listing %s failed: %s", listing_id, e)
        raise http_error(e)


@router.delete("/{listing_id}", status_code=204)
async def delete_listing(listing_id: str):
    try:
        await _get_client().delete_listing(listing_id)
    except SpiritBidError as e:
        logger.warning("Delete listing %s failed: %s", listing_id, e)
        raise http_error(e)
    return Response(status_code=204)


@router.post("/{listing_id}/bids", response_model=Listing)
async def place_bid(listing_id: str, body: BidCreate):
    try:
        listing = await _get_client().fetch_listing(listing_id)
        return await _get_bids().place(listing, body.amount)
    except SpiritBidError as e:
        logger.warning("Bid on %s failed: %s", listing_id, e)
        raise http_error(e)
