"""Error taxonomy for swap building.

Every failure surfaced by the builder is a SwapBuildError. Errors raised
after a venue has been selected carry that venue so callers can tell which
integration rejected the trade.
"""

from typing import Optional


class SwapBuildError(Exception):
    """Base exception for all swap build failures."""

    error_type = "SwapBuildError"

    def __init__(self, message: str, venue: Optional[str] = None):
        self.message = message
        self.venue = venue
        super().__init__(message)

    def with_venue(self, venue: str) -> "SwapBuildError":
        """Annotate the error with the venue it originated from, keeping any existing one."""
        if self.venue is None:
            self.venue = venue
        return self

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "errorType": self.error_type,
            "venue": self.venue,
        }

    def __str__(self) -> str:
        if self.venue:
            return f"[{self.venue}] {self.message}"
        return self.message


class ValidationError(SwapBuildError):
    """Raised when the inbound request is malformed."""

    error_type = "ValidationError"


class UnsupportedVenue(SwapBuildError):
    """Raised when no venue reports the token as tradeable."""

    error_type = "UnsupportedVenue"


class VenueQuoteError(SwapBuildError):
    """Raised when the selected venue cannot quote or rejects the trade."""

    error_type = "VenueQuoteError"


class CompileError(SwapBuildError):
    """Raised when the instruction set cannot be compiled into a transaction."""

    error_type = "CompileError"


class TransientNetworkError(SwapBuildError):
    """Raised on timeouts or connection failures talking to remote APIs."""

    error_type = "TransientNetworkError"
