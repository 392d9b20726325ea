"""Health check and static category endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from ..categories import CATEGORIES
from ..config import settings
from ..schemas import CategoryInfo, HealthResponse, ServiceStatus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health", response_model=HealthResponse)
def health_check():
    from ..main import app_state

    services: list[ServiceStatus] = []
    overall = "ok"

    # Auction API client
    if app_state.get("client"):
        if settings.noroff_api_key:
            services.append(ServiceStatus(name="auction_api", status="ok"))
        else:
            services.append(ServiceStatus(name="auction_api", status="degraded", detail="API key not configured"))
            overall = "degraded"
    else:
        services.append(ServiceStatus(name="auction_api", status="unavailable", detail="client not started"))
        overall = "degraded"

    # Session
    session = app_state.get("session")
    authenticated = bool(session and session.is_authenticated)
    services.append(ServiceStatus(
        name="session",
        status="ok" if authenticated else "unavailable",
        detail=f"signed in as {session.get_username()}" if authenticated else "not signed in",
    ))

    feed = app_state.get("feed")
    kind = feed.kind if feed else None

    return HealthResponse(
        status=overall,
        authenticated=authenticated,
        active_view=kind.value if kind else None,
        services=services,
    )


@router.get("/categories", response_model=list[CategoryInfo])
def list_categories():
    return [CategoryInfo(key=c.key, name=c.name, keywords=list(c.keywords)) for c in CATEGORIES]
