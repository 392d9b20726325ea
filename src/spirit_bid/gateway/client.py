"""Async client for the auction REST API (listings, search, profiles, bids)."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from ..config import settings
from ..schemas import BidPage, Listing, ListingCreate, ListingPage, ListingUpdate, Profile, ProfileUpdate
from . import (
    AuthRequiredError,
    BidFailedError,
    BidForbiddenError,
    BidUnauthenticatedError,
    ConnectivityError,
    InvalidBidError,
    ListingNotFoundError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Noroff-API-Key"
MAX_PAGE_SIZE = 100

LISTINGS_PATH = "auction/listings"
SEARCH_PATH = "auction/listings/search"
PROFILES_PATH = "auction/profiles"


class FetchKind(str, Enum):
    LISTINGS = "listings"
    BY_USER = "by_user"
    BY_ID = "by_id"
    SEARCH = "search"
    USER_BIDS = "user_bids"
    USER_WINS = "user_wins"


def _error_message(resp: httpx.Response, default: str) -> str:
    """First upstream ``errors[].message``, else ``default``."""
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        errors = body.get("errors") or []
        if errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return errors[0]["message"]
    return default


def _check_paging(limit: int, page: int) -> None:
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if page < 1:
        raise ValidationError("page must be 1 or greater")


class AuctionClient:
    """Authenticated access to the auction API.

    Every request carries the API key header. User-scoped and mutating
    requests also need a bearer token from the session store and fail
    with ``AuthRequiredError`` before any I/O when it is missing.
    Non-2xx answers become ``UpstreamError``; transport failures become
    ``ConnectivityError``. Nothing is retried here.
    """

    def __init__(
        self,
        session,
        base_url: str | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session = session
        self._base_url = (base_url or settings.api_base_url).rstrip("/") + "/"
        self._api_key = api_key if api_key is not None else settings.noroff_api_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=settings.request_timeout,
                transport=self._transport,
            )
        return self._client

    # --- plumbing ---

    def _headers(self, token: str | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", API_KEY_HEADER: self._api_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _require_token(self, action: str) -> str:
        token = self._session.get_token() if self._session else None
        if not token:
            raise AuthRequiredError(f"You must be logged in to {action}")
        return token

    def _resolve_username(self, username: str | None, action: str) -> str:
        name = username or (self._session.get_username() if self._session else None)
        if not name:
            raise ValidationError(f"A username is required to {action}")
        return name

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(method, path, params=params, json=json, headers=self._headers(token))
        except httpx.RequestError as e:
            logger.warning("Request error for %s %s: %s", method, path, e)
            raise ConnectivityError(
                "Network error: unable to reach the auction service. Check your internet connection"
            ) from e

    @staticmethod
    def _body(resp: httpx.Response, default_error: str) -> dict[str, Any]:
        if not resp.is_success:
            message = _error_message(resp, default_error)
            logger.warning("HTTP %s for %s: %s", resp.status_code, resp.request.url, message)
            raise UpstreamError(message, status=resp.status_code)
        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamError("Invalid response from server", status=resp.status_code) from e
        if not isinstance(body, dict):
            raise UpstreamError("Invalid response from server", status=resp.status_code)
        return body

    @classmethod
    def _listing(cls, resp: httpx.Response, default_error: str) -> Listing:
        body = cls._body(resp, default_error)
        if not isinstance(body.get("data"), dict):
            raise UpstreamError("Invalid response from server", status=resp.status_code)
        return Listing.model_validate(body["data"])

    @classmethod
    def _profile(cls, resp: httpx.Response, default_error: str) -> Profile:
        body = cls._body(resp, default_error)
        if not isinstance(body.get("data"), dict):
            raise UpstreamError("Invalid response from server", status=resp.status_code)
        return Profile.model_validate(body["data"])

    # --- reads ---

    async def fetch_page(self, kind: FetchKind | str, **params: Any):
        """Dispatch a read by intent.

        ``by_id`` returns a single ``Listing``; ``user_bids`` returns a
        ``BidPage``; every other kind returns a ``ListingPage``.
        """
        kind = FetchKind(kind)
        if kind is FetchKind.BY_ID:
            return await self.fetch_listing(params["listing_id"])
        if kind is FetchKind.LISTINGS:
            return await self.fetch_listings(**params)
        if kind is FetchKind.SEARCH:
            return await self.search_listings(**params)
        if kind is FetchKind.BY_USER:
            return await self.fetch_listings_by_user(**params)
        if kind is FetchKind.USER_BIDS:
            return await self.fetch_user_bids(**params)
        return await self.fetch_user_wins(**params)

    async def fetch_listings(
        self,
        limit: int = 12,
        page: int = 1,
        *,
        tag: str | None = None,
        active: bool | None = None,
        sort_by: str = "created",
        sort_order: str = "desc",
    ) -> ListingPage:
        _check_paging(limit, page)
        params: dict[str, Any] = {
            "limit": limit,
            "page": page,
            "_bids": "true",
            "_seller": "true",
            "sort": sort_by,
            "sortOrder": sort_order,
        }
        if tag:
            params["_tag"] = tag
        if active is not None:
            params["_active"] = "true" if active else "false"
        resp = await self._request("GET", LISTINGS_PATH, params=params)
        return ListingPage.model_validate(self._body(resp, "Failed to fetch auction listings"))

    async def fetch_listing(self, listing_id: str) -> Listing:
        if not listing_id:
            raise ValidationError("Listing ID is required")
        resp = await self._request(
            "GET",
            f"{LISTINGS_PATH}/{quote(listing_id, safe='')}",
            params={"_bids": "true", "_seller": "true"},
        )
        return self._listing(resp, "Failed to fetch auction listing")

    async def search_listings(
        self,
        query: str,
        limit: int = 12,
        page: int = 1,
        *,
        tag: str | None = None,
        active: bool | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> ListingPage:
        if not query or not query.strip():
            raise ValidationError("A search query is required")
        _check_paging(limit, page)
        params: dict[str, Any] = {
            "q": query,
            "limit": limit,
            "page": page,
            "_bids": "true",
            "_seller": "true",
        }
        if tag:
            params["_tag"] = tag
        if active is not None:
            params["_active"] = "true" if active else "false"
        if sort_by:
            params["sort"] = sort_by
        if sort_order:
            params["sortOrder"] = sort_order
        resp = await self._request("GET", SEARCH_PATH, params=params)
        return ListingPage.model_validate(self._body(resp, "Failed to search auction listings"))

    async def fetch_listings_by_user(
        self,
        username: str | None = None,
        limit: int = 12,
        page: int = 1,
        *,
        sort_by: str = "created",
        sort_order: str = "desc",
    ) -> ListingPage:
        name = self._resolve_username(username, "fetch user listings")
        _check_paging(limit, page)
        # Bearer is optional here: attached only when a session exists.
        token = self._session.get_token() if self._session else None
        resp = await self._request(
            "GET",
            f"{PROFILES_PATH}/{quote(name, safe='')}/listings",
            params={
                "limit": limit,
                "page": page,
                "_bids": "true",
                "_seller": "true",
                "sort": sort_by,
                "sortOrder": sort_order,
            },
            token=token,
        )
        return ListingPage.model_validate(self._body(resp, "Failed to fetch user listings"))

    async def fetch_user_bids(self, username: str | None = None, limit: int = 12, page: int = 1) -> BidPage:
        token = self._require_token("view bids")
        name = self._resolve_username(username, "view bids")
        _check_paging(limit, page)
        resp = await self._request(
            "GET",
            f"{PROFILES_PATH}/{quote(name, safe='')}/bids",
            params={"limit": limit, "page": page, "_listings": "true", "_seller": "true"},
            token=token,
        )
        return BidPage.model_validate(self._body(resp, "Failed to fetch user bids"))

    async def fetch_user_wins(self, username: str | None = None, limit: int = 12, page: int = 1) -> ListingPage:
        token = self._require_token("view wins")
        name = self._resolve_username(username, "view wins")
        _check_paging(limit, page)
        resp = await self._request(
            "GET",
            f"{PROFILES_PATH}/{quote(name, safe='')}/wins",
            params={"limit": limit, "page": page, "_bids": "true", "_seller": "true"},
            token=token,
        )
        return ListingPage.model_validate(self._body(resp, "Failed to fetch user wins"))

    async def fetch_profile(self, username: str | None = None) -> Profile:
        token = self._require_token("view a profile")
        name = self._resolve_username(username, "view a profile")
        resp = await self._request("GET", f"{PROFILES_PATH}/{quote(name, safe='')}", token=token)
        return self._profile(resp, "Failed to fetch profile")

    # --- writes ---

    async def create_listing(self, payload: ListingCreate) -> Listing:
        token = self._require_token("create a listing")
        resp = await self._request(
            "POST",
            LISTINGS_PATH,
            json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
            token=token,
        )
        return self._listing(resp, "Failed to create auction listing")

    async def update_listing(self, listing_id: str, payload: ListingUpdate) -> Listing:
        token = self._require_token("update a listing")
        if not listing_id:
            raise ValidationError("Listing ID is required")
        resp = await self._request(
            "PUT",
            f"{LISTINGS_PATH}/{quote(listing_id, safe='')}",
            json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
            token=token,
        )
        return self._listing(resp, "Failed to update auction listing")

    async def delete_listing(self, listing_id: str) -> None:
        token = self._require_token("delete a listing")
        if not listing_id:
            raise ValidationError("Listing ID is required")
        resp = await self._request("DELETE", f"{LISTINGS_PATH}/{quote(listing_id, safe='')}", token=token)
        if not resp.is_success:
            message = _error_message(resp, "Failed to delete auction listing")
            logger.warning("HTTP %s deleting listing %s: %s", resp.status_code, listing_id, message)
            raise UpstreamError(message, status=resp.status_code)

    async def update_profile(self, payload: ProfileUpdate, username: str | None = None) -> Profile:
        token = self._require_token("update a profile")
        name = self._resolve_username(username, "update a profile")
        body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not body:
            raise ValidationError("Nothing to update: provide a bio, avatar or banner")
        resp = await self._request("PUT", f"{PROFILES_PATH}/{quote(name, safe='')}", json=body, token=token)
        profile = self._profile(resp, "Failed to update profile")
        logger.info("Profile %s updated (%s)", name, ", ".join(sorted(body)))
        return profile

    async def place_bid(self, listing_id: str, amount: int) -> Listing:
        """Place a bid; returns the listing as the API reports it afterwards.

        400/401/403/404 map to distinct error kinds so the UI can phrase
        them differently; any other non-2xx is ``BidFailedError``.
        """
        if not listing_id:
            raise ValidationError("Listing ID is required")
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError("Bid amount must be a whole number")
        if amount <= 0:
            raise ValidationError("Bid amount must be greater than zero")
        token = self._require_token("place a bid")

        resp = await self._request(
            "POST",
            f"{LISTINGS_PATH}/{quote(listing_id, safe='')}/bids",
            json={"amount": amount},
            token=token,
        )
        status = resp.status_code
        if status == 400:
            raise InvalidBidError(_error_message(resp, "Invalid bid amount or auction has ended"), status=status)
        if status == 401:
            raise BidUnauthenticatedError("Authentication failed. Please log in again", status=status)
        if status == 403:
            raise BidForbiddenError("You cannot bid on this auction", status=status)
        if status == 404:
            raise ListingNotFoundError("Auction not found", status=status)
        if not resp.is_success:
            raise BidFailedError(
                _error_message(resp, f"Bid failed: {status} {resp.reason_phrase}".rstrip()),
                status=status,
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamError("Invalid response from server", status=status) from e
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise UpstreamError("Invalid response from server", status=status)
        logger.info("Bid of %d placed on listing %s", amount, listing_id)
        return Listing.model_validate(body["data"])

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
