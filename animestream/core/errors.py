"""
Error types
Failures that callers are expected to handle. Extraction misses are not
errors: strategies return None and the resolver moves on.
"""
from typing import Optional


class AnimeStreamError(Exception):
    """Base class for package errors"""


class FetchError(AnimeStreamError):
    """Raised when an upstream page cannot be fetched.

    Covers exhausted retries on network failures, timeouts and 5xx responses,
    and non-retryable statuses such as 404.
    """

    def __init__(self, url: str, attempts: int, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.attempts = attempts
        self.status_code = status_code
        self.reason = reason
        detail = f"status {status_code}" if status_code else (reason or "network error")
        super().__init__(f"Failed to fetch {url} after {attempts} attempt(s): {detail}")


class ExtractionError(AnimeStreamError):
    """Raised when a page cannot be interpreted at all (bad id, empty page)."""
