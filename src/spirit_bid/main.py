"""FastAPI application with lifespan-managed API client and listing views."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.router import api_router
from .bidding import BidService
from .browse.feed import ListingFeed
from .browse.profile import ProfileTabs
from .config import settings
from .gateway.client import AuctionClient
from .search.engine import UnifiedSearch
from .session import SessionStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Shared state accessible by API endpoints
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if not settings.noroff_api_key:
        logger.warning("NOROFF_API_KEY not set; the auction API will reject requests")

    session = SessionStore.from_settings()
    app_state["session"] = session

    client = AuctionClient(session)
    app_state["client"] = client

    search_engine = UnifiedSearch(client, session)
    app_state["feed"] = ListingFeed(client, search_engine)
    app_state["profile"] = ProfileTabs(client, session)
    app_state["bids"] = BidService(client, session)

    if session.is_authenticated:
        logger.info("Signed in as %s", session.get_username())
    else:
        logger.info("No session configured; user search and profile tabs are disabled")

    logger.info("Spirit Bid started (api=%s)", settings.api_base_url)

    yield

    # Shutdown
    await client.close()
    app_state.clear()
    logger.info("Spirit Bid stopped")


app = FastAPI(
    title="Spirit Bid",
    description="Auction marketplace client: browse, search, filter and bid on listings",
    version="0.1.0",
    lifespan=lifespan,
)
if settings.api_key:
    from .auth import ApiKeyMiddleware
    app.add_middleware(ApiKeyMiddleware)

app.include_router(api_router)
