"""Tests for bid helpers and the pre-flight checks of BidService."""

from datetime import timedelta

import pytest

from spirit_bid.bidding import BidService, belongs_to_user, current_bid, is_ended, minimum_bid
from spirit_bid.gateway import AuthRequiredError, ValidationError

from conftest import NOW, build_bid, build_listing


class TestBidHelpers:
    def test_no_bids(self, make_listing):
        listing = make_listing(1)
        assert current_bid(listing) is None
        assert minimum_bid(listing) == 1

    def test_highest_wins_and_ties_go_to_newest(self, make_listing):
        older = build_bid(50, minutes_ago=10, bidder="carol")
        newer = build_bid(50, minutes_ago=1, bidder="dave")
        listing = make_listing(1, bids=[build_bid(20), newer, older])

        assert current_bid(listing).bidder.name == "dave"
        assert minimum_bid(listing) == 51

    def test_is_ended(self, make_listing):
        assert is_ended(make_listing(1, ends_at=NOW - timedelta(seconds=1)), now=NOW)
        assert not is_ended(make_listing(1), now=NOW)

    def test_belongs_to_user(self, make_listing, session, anonymous):
        assert belongs_to_user(make_listing(1, seller="alice"), session)
        assert belongs_to_user("alice", session)
        assert not belongs_to_user(make_listing(1, seller="bob"), session)
        assert not belongs_to_user(make_listing(1, seller=None), session)
        assert not belongs_to_user(make_listing(1, seller="alice"), anonymous)


class TestBidService:
    @pytest.mark.asyncio
    async def test_places_bid(self, client, session):
        listing = build_listing("abc", seller="bob", bids=[build_bid(10)])
        client.place_bid.return_value = listing

        result = await BidService(client, session).place(listing, 11, now=NOW)

        assert result is listing
        client.place_bid.assert_awaited_once_with("abc", 11)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "listing,amount,message",
        [
            (build_listing(1, seller="bob", ends_at=NOW - timedelta(hours=1)), 5, "This auction has ended"),
            (build_listing(1, seller="alice"), 5, "You cannot bid on your own listing"),
            (build_listing(1, seller="bob", bids=[build_bid(10)]), 10, "Bid must be at least 11 credits"),
            (build_listing(1, seller="bob"), 2.5, "whole number"),
        ],
    )
    async def test_rejections(self, client, session, listing, amount, message):
        with pytest.raises(ValidationError, match=message):
            await BidService(client, session).place(listing, amount, now=NOW)
        client.place_bid.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_login(self, client, anonymous):
        with pytest.raises(AuthRequiredError, match="Please log in to place a bid"):
            await BidService(client, anonymous).place(build_listing(1, seller="bob"), 5, now=NOW)
        client.place_bid.assert_not_awaited()
