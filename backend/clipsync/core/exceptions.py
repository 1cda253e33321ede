"""
Error taxonomy for the clip sync engine.

Sync-cycle errors are caught at the scheduler boundary and recorded;
HTTP handlers turn them into generic 500 responses.
"""


class ClipSyncError(Exception):
    """Base exception for clip sync errors."""
    pass


class AuthError(ClipSyncError):
    """Raised when the Zoom credential exchange fails."""
    pass


class FetchError(ClipSyncError):
    """Raised when a clip page request fails."""
    pass


class PaginationLimitExceeded(FetchError):
    """Raised when pagination runs past its page, time or cursor bounds."""

    def __init__(self, message: str, pages_fetched: int = 0):
        super().__init__(message)
        self.pages_fetched = pages_fetched


class StoreError(ClipSyncError):
    """Raised when a database operation fails."""
    pass


class ValidationError(ClipSyncError):
    """Raised for malformed client input."""
    pass


class SalesforceAuthError(ClipSyncError):
    """Raised when the Salesforce authorization code exchange fails."""
    pass
