"""
Error Taxonomy

Exceptions raised by the exchange gateway, normalizer, and order manager.

Propagation:
- ConfigurationError: fatal, never retried
- UpstreamError: non-success HTTP or malformed body, retried unless 4xx-terminal
- ParseError: one malformed record, absorbed at the normalizer boundary
- OrderError: order placement/cancellation failure, carries the exchange body verbatim
- RetryExhaustedError: all attempts used, wraps the last failure
"""

from typing import Optional


class IronflyError(Exception):
    """Base exception for all ironfly errors."""


class ConfigurationError(IronflyError):
    """Raised when credentials or required settings are missing."""


class UpstreamError(IronflyError):
    """
    Raised when the exchange returns a non-success status or an unusable body.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status (None when the body was malformed on a 2xx)
        body: Raw response body as returned by the exchange
        endpoint: Request path that failed
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
        endpoint: str = "",
    ):
        self.message = message
        self.status_code = status_code
        self.body = body or ""
        self.endpoint = endpoint or ""
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code}): {self.body}"


class OrderError(UpstreamError):
    """Raised when order placement or cancellation is rejected by the exchange."""


class ParseError(IronflyError):
    """Raised when a single raw record cannot be parsed."""

    def __init__(self, message: str, symbol: str = ""):
        self.message = message
        self.symbol = symbol
        super().__init__(message)


class NoExpiryAvailableError(IronflyError):
    """Raised when no listed expiry falls inside the search horizon."""


class RetryExhaustedError(IronflyError):
    """
    Raised when an operation fails on every allowed attempt.

    Attributes:
        operation_name: Name of the retried operation
        attempts: Number of attempts made
        last_error: Final underlying failure
    """

    def __init__(self, operation_name: str, attempts: int, last_error: Optional[BaseException]):
        self.operation_name = operation_name
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation_name} failed after {attempts} attempt(s): {last_error}"
        )


class RetryCancelledError(RetryExhaustedError):
    """Raised when a retry wait is cancelled or the retry deadline has passed."""
