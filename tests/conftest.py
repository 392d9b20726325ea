"""Test fixtures: listing factories, sessions and a mocked API client."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from spirit_bid.schemas import Bid, Listing, ListingPage, PageMeta, Profile
from spirit_bid.session import SessionStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def build_listing(
    listing_id,
    title: str = "Plain item",
    tags=(),
    seller: str | None = "alice",
    created: datetime | None = None,
    ends_at: datetime | None = None,
    bids=(),
) -> Listing:
    return Listing(
        id=str(listing_id),
        title=title,
        tags=list(tags),
        created=created or NOW,
        ends_at=ends_at or datetime.now(timezone.utc) + timedelta(days=7),
        seller=Profile(name=seller) if seller else None,
        bids=list(bids),
    )


def build_bid(amount: int, minutes_ago: int = 0, bidder: str = "bob") -> Bid:
    return Bid(amount=amount, bidder=Profile(name=bidder), created=NOW - timedelta(minutes=minutes_ago))


def build_page(listings, current_page: int | None = None, page_count: int | None = None) -> ListingPage:
    return ListingPage(data=list(listings), meta=PageMeta(current_page=current_page, page_count=page_count))


@pytest.fixture()
def make_listing():
    return build_listing


@pytest.fixture()
def make_bid():
    return build_bid


@pytest.fixture()
def make_page():
    return build_page


@pytest.fixture()
def session() -> SessionStore:
    return SessionStore(token="token-123", username="alice")


@pytest.fixture()
def anonymous() -> SessionStore:
    return SessionStore()


@pytest.fixture()
def client():
    """AuctionClient stand-in; each test wires the calls it needs."""
    return AsyncMock()
