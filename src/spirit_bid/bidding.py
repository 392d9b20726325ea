"""Bid rules the client checks before asking the API."""

from __future__ import annotations

import logging
from datetime import datetime

from .gateway import AuthRequiredError, ValidationError
from .schemas import Bid, Listing

logger = logging.getLogger(__name__)


def current_bid(listing: Listing) -> Bid | None:
    """Highest bid; among equal amounts the most recent one."""
    if not listing.bids:
        return None
    return max(listing.bids, key=lambda b: (b.amount, b.created.timestamp()))


def highest_bid_amount(listing: Listing) -> int:
    bid = current_bid(listing)
    return bid.amount if bid else 0


def minimum_bid(listing: Listing) -> int:
    return highest_bid_amount(listing) + 1


def is_ended(listing: Listing, now: datetime | None = None) -> bool:
    return not listing.is_active(now)


def belongs_to_user(owner, session) -> bool:
    """Whether ``owner`` (a listing or a seller name) is the signed-in user."""
    if isinstance(owner, Listing):
        owner = owner.seller.name if owner.seller else None
    username = session.get_username() if session else None
    return bool(owner) and owner == username


class BidService:
    def __init__(self, client, session) -> None:
        self._client = client
        self._session = session

    async def place(self, listing: Listing, amount: int, now: datetime | None = None) -> Listing:
        if not self._session or not self._session.get_token():
            raise AuthRequiredError("Please log in to place a bid")
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError("Bid amount must be a whole number")
        if is_ended(listing, now):
            raise ValidationError("This auction has ended")
        if belongs_to_user(listing, self._session):
            raise ValidationError("You cannot bid on your own listing")
        minimum = minimum_bid(listing)
        if amount < minimum:
            raise ValidationError(f"Bid must be at least {minimum} credits")

        logger.info("Placing bid of %d credits on listing %s", amount, listing.id)
        return await self._client.place_bid(listing.id, amount)
