"""Retry policy for GitHub reads.

Pure value object: it decides how long to wait and whether a response is
final, but performs no I/O itself, so it can be tested in isolation.
"""
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from tenacity import wait_incrementing


RATE_LIMIT_STATUS = 403
NOT_FOUND_STATUS = 404
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"


@dataclass(frozen=True)
class RetryPolicy:
    """How a fetch is retried.

    Attributes:
        max_attempts: Attempts before giving up (rate-limit waits excluded)
        base_delay: Seconds; attempt ``i`` failing waits ``base_delay * (i + 1)``
        rate_limit_window: Only reset hints closer than this many seconds are honoured
        max_rate_limit_waits: Consecutive rate-limit waits allowed within one attempt
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    rate_limit_window: float = 60.0
    max_rate_limit_waits: int = 3

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.rate_limit_window <= 0:
            raise ValueError("rate_limit_window must be > 0")
        if self.max_rate_limit_waits < 0:
            raise ValueError("max_rate_limit_waits must be >= 0")

    def with_max_attempts(self, max_attempts: int) -> "RetryPolicy":
        return replace(self, max_attempts=max_attempts)

    def backoff(self, attempt_index: int) -> float:
        """Linear backoff after the zero-based attempt ``attempt_index`` failed."""
        return self.base_delay * (attempt_index + 1)

    def wait_strategy(self) -> wait_incrementing:
        """The same linear backoff expressed as a tenacity wait."""
        return wait_incrementing(start=self.base_delay, increment=self.base_delay)

    def is_returnable(self, status: int) -> bool:
        """2xx and 404 end the fetch; 404 is a valid answer for optional resources."""
        return 200 <= status < 300 or status == NOT_FOUND_STATUS

    def rate_limit_wait(self, status: int, headers: Mapping[str, str], now: float) -> Optional[float]:
        """Seconds to wait for the rate limit to reset, or None to fall through.

        Args:
            status: HTTP status of the response
            headers: Response headers
            now: Current Unix time in seconds

        Returns:
            The wait in seconds when the response is a 403 carrying a reset
            hint that lies strictly between now and the rate-limit window
        """
        if status != RATE_LIMIT_STATUS:
            return None
        raw_reset = headers.get(RATE_LIMIT_RESET_HEADER)
        if raw_reset is None:
            return None
        try:
            reset_at = float(int(str(raw_reset).strip()))
        except ValueError:
            return None
        wait = reset_at - now
        if 0 < wait < self.rate_limit_window:
            return wait
        return None
