from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


# --- Listing ---

class Media(BaseModel):
    url: str
    alt: str = ""


class Profile(BaseModel):
    name: str
    email: str | None = None
    bio: str | None = None
    avatar: Media | None = None
    banner: Media | None = None
    # Only present on the profile endpoint itself, not on embedded sellers/bidders.
    credits: int | None = None


class Bid(BaseModel):
    id: str | None = None
    amount: int
    bidder: Profile | None = None
    created: datetime


class Listing(BaseModel):
    id: str
    title: str = ""
    description: str | None = None
    media: list[Media] = []
    tags: list[str] = []
    created: datetime
    updated: datetime | None = None
    ends_at: datetime = Field(alias="endsAt")
    seller: Profile | None = None
    bids: list[Bid] = []

    model_config = {"populate_by_name": True}

    def is_active(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.ends_at > now


class SearchResult(Listing):
    # No default: a plain Listing must not validate as a SearchResult.
    match_type: Literal["content", "user"] = Field(alias="searchMatchType")


# --- Pagination envelopes ---

class PageMeta(BaseModel):
    is_first_page: bool | None = Field(None, alias="isFirstPage")
    is_last_page: bool | None = Field(None, alias="isLastPage")
    current_page: int | None = Field(None, alias="currentPage")
    previous_page: int | None = Field(None, alias="previousPage")
    next_page: int | None = Field(None, alias="nextPage")
    page_count: int | None = Field(None, alias="pageCount")
    total_count: int | None = Field(None, alias="totalCount")

    model_config = {"populate_by_name": True}


class ListingPage(BaseModel):
    data: list[Listing] = []
    meta: PageMeta = PageMeta()


class BidRecord(Bid):
    """A bid as returned by the profile bids endpoint, with its listing embedded."""

    listing: Listing | None = None


class BidPage(BaseModel):
    data: list[BidRecord] = []
    meta: PageMeta = PageMeta()


# --- Search ---

class SearchMeta(BaseModel):
    total_results: int = Field(0, alias="totalResults")
    content_matches: int = Field(0, alias="contentMatches")
    user_matches: int = Field(0, alias="userMatches")
    is_first_page: bool = Field(True, alias="isFirstPage")
    is_last_page: bool = Field(True, alias="isLastPage")
    has_results: bool = Field(False, alias="hasResults")
    page: int = 1

    model_config = {"populate_by_name": True}


class SearchResults(BaseModel):
    query: str
    data: list[SearchResult] = []
    meta: SearchMeta = SearchMeta()


# --- Write payloads ---

class ListingCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    media: list[Media] = []
    tags: list[str] = []
    ends_at: datetime = Field(alias="endsAt")

    model_config = {"populate_by_name": True}


class ListingUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    media: list[Media] | None = None
    tags: list[str] | None = None

    model_config = {"populate_by_name": True}


class ProfileUpdate(BaseModel):
    bio: str | None = None
    avatar: Media | None = None
    banner: Media | None = None


class BidCreate(BaseModel):
    amount: int


# --- Local HTTP surface ---

class FeedResponse(BaseModel):
    kind: Literal["feed", "category", "fallback", "search"]
    listings: list[SearchResult | Listing] = []
    new_items: int = 0
    page: int = 1
    has_more: bool = False
    cta_label: str = "Load More"
    category: str | None = None
    category_name: str | None = None
    query: str | None = None
    search_meta: SearchMeta | None = None
    notice: str | None = None
    reload_required: bool = False


class ProfileTabResponse(BaseModel):
    tab: Literal["bids", "listings", "wins"]
    listings: list[Listing] = []
    bids: list[BidRecord] = []
    page: int = 1
    has_more: bool = False


class CategoryInfo(BaseModel):
    key: str
    name: str
    keywords: list[str]


class ServiceStatus(BaseModel):
    name: str
    status: str  # "ok" / "degraded" / "unavailable"
    detail: str = ""


class HealthResponse(BaseModel):
    status: str = "ok"  # "ok" / "degraded"
    authenticated: bool = False
    active_view: str | None = None
    services: list[ServiceStatus] = []
