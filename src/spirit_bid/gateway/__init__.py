class SpiritBidError(Exception):
    """Base class for every error raised by the client core."""


class ValidationError(SpiritBidError):
    """Caller input is missing or invalid. Raised before any network call."""


class AuthRequiredError(SpiritBidError):
    """The operation needs a session the caller does not hold."""


class ConnectivityError(SpiritBidError):
    """The API could not be reached (DNS, connection, transport)."""


class UpstreamError(SpiritBidError):
    """The API answered with a non-2xx status."""

    kind = "upstream"

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class InvalidBidError(UpstreamError):
    kind = "invalid_bid"


class BidUnauthenticatedError(UpstreamError):
    kind = "unauthenticated"


class BidForbiddenError(UpstreamError):
    kind = "forbidden"


class ListingNotFoundError(UpstreamError):
    kind = "not_found"


class BidFailedError(UpstreamError):
    kind = "bid_failed"


class NotFoundDuringProbe(SpiritBidError):
    """A username variant does not exist. Used only while probing case variants."""

    def __init__(self, username: str):
        super().__init__(f"Profile not found: {username}")
        self.username = username
