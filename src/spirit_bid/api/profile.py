"""Profile endpoints: the profile itself and its tabs (bids / listings / wins)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from ..browse.profile import ProfileTab, ProfileTabs, TabSnapshot
from ..gateway import SpiritBidError
from ..gateway.client import AuctionClient
from ..schemas import Profile, ProfileTabResponse, ProfileUpdate
from . import http_error

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/profile", tags=["profile"])


def _get_client() -> AuctionClient:
    from ..main import app_state
    return app_state["client"]


def _get_tabs() -> ProfileTabs:
    from ..main import app_state
    return app_state["profile"]


def _tab_response(snapshot: TabSnapshot | None) -> ProfileTabResponse:
    if snapshot is None:
        raise HTTPException(409, "The profile tab changed while loading; please retry")
    if snapshot.tab is ProfileTab.BIDS:
        return ProfileTabResponse(
            tab=snapshot.tab.value, bids=snapshot.items, page=snapshot.page, has_more=snapshot.has_more,
        )
    return ProfileTabResponse(
        tab=snapshot.tab.value, listings=snapshot.items, page=snapshot.page, has_more=snapshot.has_more,
    )


@router.get("", response_model=Profile)
async def get_profile(name: str | None = Query(None, min_length=1)):
    """The signed-in user's profile, or another user's when ``name`` is given."""
    try:
        return await _get_client().fetch_profile(name)
    except SpiritBidError as e:
        logger.warning("Fetching profile %s failed: %s", name or "(self)", e)
        raise http_error(e)


@router.put("", response_model=Profile)
async def update_profile(payload: ProfileUpdate):
    try:
        return await _get_client().update_profile(payload)
    except SpiritBidError as e:
        logger.warning("Updating profile failed: %s", e)
        raise http_error(e)


@router.post("/more", response_model=ProfileTabResponse)
async def load_more_tab():
    try:
        snapshot = await _get_tabs().load_more()
    except SpiritBidError as e:
        logger.warning("Loading more profile items failed: %s", e)
        raise http_error(e)
    return _tab_response(snapshot)


@router.get("/{tab}", response_model=ProfileTabResponse)
async def open_tab(tab: ProfileTab):
    try:
        snapshot = await _get_tabs().switch(tab)
    except SpiritBidError as e:
        logger.warning("Loading profile tab %s failed: %s", tab.value, e)
        raise http_error(e)
    return _tab_response(snapshot)
