"""
Exception classes for ledger gateway operations.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger gateway operations."""
    pass


class DecodeError(LedgerError):
    """Raised for malformed event text or an unexpected account layout."""
    pass


class FetchError(LedgerError):
    """Raised when an RPC/transport call fails."""
    pass


class RateLimitError(FetchError):
    """Raised when the RPC node rate limits us."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class AccountNotFoundError(FetchError):
    """Raised when an account the gateway needs does not exist."""
    pass


class SubscriptionError(LedgerError):
    """Raised when a log subscription cannot be established."""
    pass
