"""Optional API key protection for the local HTTP surface.

With API_KEY set, /api/ requests must present the key as an
``X-API-Key`` header or an ``api_key`` query parameter. /api/health
stays reachable without it; paths outside /api/ are never guarded.

This guards the local server only. The auction API key sent upstream
is a separate setting (NOROFF_API_KEY).
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .config import settings

logger = logging.getLogger(__name__)

HEADER_NAME = "X-API-Key"
QUERY_PARAM = "api_key"
OPEN_PATHS = frozenset({"/api/health"})


def presented_key(request: Request) -> str | None:
    return request.headers.get(HEADER_NAME) or request.query_params.get(QUERY_PARAM)


def is_protected(path: str) -> bool:
    return path.startswith("/api/") and path not in OPEN_PATHS


class ApiKeyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, api_key: str | None = None) -> None:
        super().__init__(app)
        self._api_key = api_key

    @property
    def expected_key(self) -> str:
        return self._api_key if self._api_key is not None else settings.api_key

    async def dispatch(self, request: Request, call_next):
        expected = self.expected_key
        if not expected or not is_protected(request.url.path):
            return await call_next(request)

        key = presented_key(request)
        if key and secrets.compare_digest(key, expected):
            return await call_next(request)

        logger.warning("Rejected %s %s: invalid or missing API key", request.method, request.url.path)
        return JSONResponse(status_code=401, content={"detail": "Invalid or missing API key"})
