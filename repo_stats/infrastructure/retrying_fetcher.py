"""HTTP GET with linear backoff and rate-limit aware waiting."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional
import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt
)
from repo_stats.domain.errors import ExhaustedRetriesError, TransientFetchError
from repo_stats.domain.retry_policy import RetryPolicy


logger = logging.getLogger(__name__)

RETRYABLE_EXCEPTIONS = (TransientFetchError, aiohttp.ClientError, asyncio.TimeoutError, OSError)


@dataclass(frozen=True)
class FetchResponse:
    """Final response of a fetch; ``payload`` is the decoded JSON of a 2xx body."""
    status: int
    reason: str
    headers: Mapping[str, str]
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class RetryingFetcher:
    """Issues one logical GET, resubmitting it on transient failure.

    A 403 carrying a near ``X-RateLimit-Reset`` hint is waited out without
    spending an attempt. Other failures back off linearly until the
    policy's attempts are used up.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time
    ):
        """Initialize the fetcher.

        Args:
            session: HTTP session used for every attempt
            policy: Retry policy (defaults to 3 attempts, 1s base delay)
            sleep: Coroutine used for every wait
            clock: Returns the current Unix time in seconds
        """
        self._session = session
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def fetch(self, url: str, max_attempts: Optional[int] = None) -> FetchResponse:
        """Fetch ``url`` until it succeeds, is not found, or attempts run out.

        Args:
            url: Absolute URL to GET
            max_attempts: Overrides the policy's attempt count for this call

        Returns:
            The 2xx or 404 response

        Raises:
            ExhaustedRetriesError: When every attempt failed
        """
        policy = self._policy if max_attempts is None else self._policy.with_max_attempts(max_attempts)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=policy.wait_strategy(),
            retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
            before_sleep=self._log_retry,
            sleep=self._sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._attempt(url, policy)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.error(f"Request to {url} failed after {policy.max_attempts} attempts: {last_error}")
            raise ExhaustedRetriesError(
                url,
                attempts=policy.max_attempts,
                status=getattr(last_error, "status", None),
                message=getattr(last_error, "message", None) or str(last_error)
            ) from last_error

        return response

    async def _attempt(self, url: str, policy: RetryPolicy) -> FetchResponse:
        rate_limit_waits = 0
        while True:
            response = await self._get(url)
            wait_time = policy.rate_limit_wait(response.status, response.headers, self._clock())
            if wait_time is None or rate_limit_waits >= policy.max_rate_limit_waits:
                break
            rate_limit_waits += 1
            logger.warning(f"Rate limit exceeded for {url}. Waiting {wait_time:.1f} seconds until reset...")
            await self._sleep(wait_time)

        if policy.is_returnable(response.status):
            return response

        raise TransientFetchError(url, response.status, response.reason)

    async def _get(self, url: str) -> FetchResponse:
        async with self._session.get(url) as raw:
            payload = None
            if 200 <= raw.status < 300:
                try:
                    payload = await raw.json(content_type=None)
                except ValueError as e:
                    raise TransientFetchError(url, raw.status, f"Invalid JSON body: {e}") from e
            return FetchResponse(
                status=raw.status,
                reason=raw.reason or "",
                headers=raw.headers,
                payload=payload
            )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Request failed (attempt {retry_state.attempt_number}): {error}. "
            f"Retrying in {delay:.1f}s..."
        )
