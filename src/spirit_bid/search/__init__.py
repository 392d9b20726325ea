from ..gateway import SpiritBidError


class SearchUnavailableError(SpiritBidError):
    """Raised when both the content and the user search failed."""

    def __init__(self, message: str = "Search temporarily unavailable. Please try again.", causes=()):
        super().__init__(message)
        self.causes = tuple(causes)
