from fastapi import HTTPException

from ..gateway import (
    AuthRequiredError,
    ConnectivityError,
    SpiritBidError,
    UpstreamError,
    ValidationError,
)
from ..search import SearchUnavailableError


def http_error(e: SpiritBidError) -> HTTPException:
    """Map a client-core error onto the status the local API answers with."""
    if isinstance(e, ValidationError):
        return HTTPException(422, str(e))
    if isinstance(e, AuthRequiredError):
        return HTTPException(401, str(e))
    if isinstance(e, (ConnectivityError, SearchUnavailableError)):
        return HTTPException(503, str(e))
    if isinstance(e, UpstreamError):
        status = e.status if e.status and 400 <= e.status < 500 else 502
        return HTTPException(status, e.message)
    return HTTPException(500, str(e))
