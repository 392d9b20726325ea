"""Tests for unified search: facets, case probing, merge and ranking."""

import asyncio
from datetime import timedelta

import pytest

from spirit_bid.gateway import ConnectivityError, UpstreamError, ValidationError
from spirit_bid.search import SearchUnavailableError
from spirit_bid.search.engine import UnifiedSearch, case_variants, merge_results

from conftest import NOW, build_listing, build_page


def _not_found(*args, **kwargs):
    raise UpstreamError("Profile not found", status=404)


class TestCaseVariants:
    def test_order_and_dedup(self):
        assert case_variants("aLiCe") == ["aLiCe", "alice", "ALICE", "Alice"]

    def test_duplicates_removed(self):
        assert case_variants("alice") == ["alice", "ALICE", "Alice"]
        assert case_variants("42") == ["42"]


class TestMerge:
    def test_content_wins_on_duplicate(self, make_listing):
        content = [make_listing(1), make_listing(2)]
        user = [make_listing(2), make_listing(3)]

        results = merge_results("q", content, user, limit=12)

        assert sorted(r.id for r in results.data) == ["1", "2", "3"]
        by_id = {r.id: r.match_type for r in results.data}
        assert by_id == {"1": "content", "2": "content", "3": "user"}
        assert results.meta.content_matches == 2
        assert results.meta.user_matches == 2
        assert results.meta.total_results == 3

    def test_content_first_then_newest(self, make_listing):
        content = [
            make_listing("old", created=NOW - timedelta(days=3)),
            make_listing("new", created=NOW),
        ]
        user = [make_listing("u-newest", created=NOW + timedelta(days=1))]

        results = merge_results("q", content, user, limit=12)

        assert [r.id for r in results.data] == ["new", "old", "u-newest"]

    def test_truncated_before_sort(self, make_listing):
        content = [make_listing(i, created=NOW - timedelta(hours=i)) for i in range(3)]
        user = [make_listing("u", created=NOW + timedelta(days=1))]

        results = merge_results("q", content, user, limit=3)

        assert [r.id for r in results.data] == ["0", "1", "2"]
        assert results.meta.is_last_page is False

    def test_empty(self):
        results = merge_results("q", [], [], limit=12)
        assert results.data == []
        assert results.meta.has_results is False
        assert results.meta.is_last_page is True

    def test_meta_serializes_camel_case(self, make_listing):
        results = merge_results("q", [make_listing(1)], [], limit=12)
        dumped = results.model_dump(by_alias=True)
        assert dumped["meta"]["contentMatches"] == 1
        assert dumped["data"][0]["searchMatchType"] == "content"


class TestUnifiedSearch:
    @pytest.mark.asyncio
    async def test_content_only_when_no_profile(self, client, session):
        client.search_listings.return_value = build_page([build_listing(1), build_listing(2)])
        client.fetch_listings_by_user.side_effect = _not_found

        results = await UnifiedSearch(client, session, limit=12).search("vintage camera")

        assert len(results.data) == 2
        assert all(r.match_type == "content" for r in results.data)
        assert results.meta.content_matches == 2
        assert results.meta.user_matches == 0
        probed = [c.args[0] for c in client.fetch_listings_by_user.await_args_list]
        assert probed == ["vintage camera", "VINTAGE CAMERA", "Vintage camera"]

    @pytest.mark.asyncio
    async def test_anonymous_search_skips_user_facet(self, client, anonymous):
        client.search_listings.return_value = build_page([build_listing(1)])

        results = await UnifiedSearch(client, anonymous).search("lamp")

        assert [r.id for r in results.data] == ["1"]
        client.fetch_listings_by_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_is_trimmed(self, client, anonymous):
        client.search_listings.return_value = build_page([])
        await UnifiedSearch(client, anonymous).search("  lamp ")
        assert client.search_listings.await_args.args[0] == "lamp"

    @pytest.mark.asyncio
    async def test_user_facet_filters_exact_seller_name(self, client, session):
        client.search_listings.return_value = build_page([])
        client.fetch_listings_by_user.return_value = build_page([
            build_listing(1, seller="Bob"),
            build_listing(2, seller="bobby"),
            build_listing(3, seller=None),
        ])

        results = await UnifiedSearch(client, session).search("bob")

        assert [r.id for r in results.data] == ["1"]
        assert results.data[0].match_type == "user"

    @pytest.mark.asyncio
    async def test_probing_stops_at_first_success_even_if_empty(self, client, session):
        client.search_listings.return_value = build_page([])
        client.fetch_listings_by_user.side_effect = [
            UpstreamError("Profile not found", status=404),
            build_page([build_listing(1, seller="someone-else")]),
            build_page([build_listing(2, seller="Bob")]),
        ]

        results = await UnifiedSearch(client, session).search("Bob")

        assert results.data == []
        assert client.fetch_listings_by_user.await_count == 2

    @pytest.mark.asyncio
    async def test_http_error_moves_to_next_variant(self, client, session):
        client.search_listings.return_value = build_page([])
        client.fetch_listings_by_user.side_effect = [
            UpstreamError("Server error", status=500),
            build_page([build_listing(7, seller="bob")]),
        ]

        results = await UnifiedSearch(client, session).search("Bob")

        assert [r.id for r in results.data] == ["7"]

    @pytest.mark.asyncio
    async def test_one_facet_failing_keeps_the_other(self, client, session):
        client.search_listings.side_effect = ConnectivityError("offline")
        client.fetch_listings_by_user.return_value = build_page([build_listing(5, seller="bob")])

        results = await UnifiedSearch(client, session).search("bob")

        assert [r.id for r in results.data] == ["5"]
        assert results.meta.content_matches == 0

    @pytest.mark.asyncio
    async def test_both_facets_failing_raises(self, client, session):
        client.search_listings.side_effect = ConnectivityError("offline")
        client.fetch_listings_by_user.side_effect = ConnectivityError("offline")

        with pytest.raises(SearchUnavailableError) as exc:
            await UnifiedSearch(client, session).search("bob")
        assert str(exc.value) == "Search temporarily unavailable. Please try again."
        assert len(exc.value.causes) == 2

    @pytest.mark.asyncio
    async def test_user_facet_with_only_http_errors_is_empty_not_failed(self, client, session):
        client.search_listings.side_effect = ConnectivityError("offline")
        client.fetch_listings_by_user.side_effect = _not_found

        results = await UnifiedSearch(client, session).search("bob")

        assert results.data == []

    @pytest.mark.asyncio
    async def test_facets_run_concurrently(self, client, session):
        content_started = asyncio.Event()
        user_started = asyncio.Event()

        async def content(*args, **kwargs):
            content_started.set()
            await asyncio.wait_for(user_started.wait(), timeout=1)
            return build_page([build_listing(1)])

        async def user(*args, **kwargs):
            user_started.set()
            await asyncio.wait_for(content_started.wait(), timeout=1)
            return build_page([build_listing(2, seller="bob")])

        client.search_listings.side_effect = content
        client.fetch_listings_by_user.side_effect = user

        results = await UnifiedSearch(client, session).search("bob")

        assert {r.id for r in results.data} == {"1", "2"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_blank_query_rejected(self, client, session, query):
        with pytest.raises(ValidationError):
            await UnifiedSearch(client, session).search(query)
        client.search_listings.assert_not_awaited()

