# File: capture_sync/core/errors.py
from typing import Optional


class CaptureSyncError(Exception):
    """Base class for every typed failure raised by the core."""


class FetchFailure(CaptureSyncError):
    """
    Network or HTTP failure against a remote service.
    `rate_limited` is set when the provider signalled throttling (403/429),
    so callers can surface a specific message.
    """

    def __init__(self, message: str, url: Optional[str] = None,
                 status_code: Optional[int] = None, rate_limited: bool = False):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.rate_limited = rate_limited

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class StorageFailure(CaptureSyncError):
    """Read or write against the persistent key-value store failed."""


class ParseFailure(CaptureSyncError):
    """A remote payload was malformed or missing required parts."""


class ValidationFailure(CaptureSyncError):
    """Caller input (e.g. a repository reference) is malformed."""
