"""Exceptions raised while fetching repository statistics."""
from typing import Optional


class FetchError(Exception):
    """Base class for failures of a single logical GitHub read."""
    pass


class NotFoundError(FetchError):
    """The resource does not exist (HTTP 404)."""

    def __init__(self, url: str):
        super().__init__(f"Not found: {url}")
        self.url = url


class TransientFetchError(FetchError):
    """A failed attempt that may succeed when retried."""

    def __init__(self, url: str, status: Optional[int] = None, message: str = ""):
        detail = f"HTTP {status}: {message}" if status is not None else message
        super().__init__(f"{detail} ({url})")
        self.url = url
        self.status = status
        self.message = message


class ExhaustedRetriesError(FetchError):
    """Every attempt of a fetch failed.

    Carries the status and message of the last attempt so callers can
    tell a rate-limit rejection from a server error.
    """

    def __init__(self, url: str, attempts: int, status: Optional[int] = None, message: str = ""):
        super().__init__(
            f"Giving up on {url} after {attempts} attempt(s): "
            + (f"HTTP {status}: {message}" if status is not None else message)
        )
        self.url = url
        self.attempts = attempts
        self.status = status
        self.message = message


class MalformedResponseError(FetchError):
    """The response body did not have the expected JSON shape."""
    pass


class AggregateFailure(Exception):
    """The load-bearing repository read failed, so no snapshot can be built."""
    pass
