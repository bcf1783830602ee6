"""GitHub REST API client implementation with rate limiting and retry logic."""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional
import aiohttp
from repo_stats.domain.errors import MalformedResponseError, NotFoundError
from repo_stats.domain.github_interface import IGitHubClient
from repo_stats.domain.models import Contributor, Release, RepositoryIdentifier, RepositoryInfo
from repo_stats.domain.retry_policy import RetryPolicy
from repo_stats.infrastructure.retrying_fetcher import RetryingFetcher


logger = logging.getLogger(__name__)


class GitHubRestClient(IGitHubClient):
    """GitHub REST API client with rate limiting and retry mechanisms.

    Implements the IGitHubClient port, providing an anti-corruption layer
    between the domain and GitHub's API. Every read goes through a
    :class:`RetryingFetcher`.
    """

    DEFAULT_API_BASE = "https://api.github.com"
    DEFAULT_HEADERS = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": "repo-stats-client",
    }

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        retry_policy: Optional[RetryPolicy] = None,
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time
    ):
        """Initialize GitHub client.

        Args:
            api_base: REST API root, without trailing slash
            retry_policy: Retry behaviour for every request
            timeout_seconds: Total timeout of a single HTTP attempt
            session: Externally managed session; the client creates and owns one otherwise
            sleep: Coroutine used for backoff and rate-limit waits
            clock: Returns the current Unix time in seconds
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._api_base = api_base.rstrip("/")
        self._retry_policy = retry_policy or RetryPolicy()
        self._timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep
        self._clock = clock
        self._fetcher: Optional[RetryingFetcher] = None

    def repo_url(self, repo_id: RepositoryIdentifier) -> str:
        return f"{self._api_base}/repos/{repo_id.owner}/{repo_id.name}"

    async def _init_fetcher(self) -> RetryingFetcher:
        """Create the HTTP session and fetcher (lazy initialization)."""
        if self._fetcher is None:
            if self._session is None:
                self._session = aiohttp.ClientSession(
                    headers=self.DEFAULT_HEADERS,
                    timeout=aiohttp.ClientTimeout(total=self._timeout_seconds)
                )
            self._fetcher = RetryingFetcher(
                self._session,
                policy=self._retry_policy,
                sleep=self._sleep,
                clock=self._clock
            )
        return self._fetcher

    async def _get_json(self, url: str) -> Any:
        fetcher = await self._init_fetcher()
        response = await fetcher.fetch(url)
        if response.status == 404:
            raise NotFoundError(url)
        return response.payload

    async def fetch_repository(self, repo_id: RepositoryIdentifier) -> RepositoryInfo:
        """Fetch repository metadata.

        Raises:
            NotFoundError: If the repository does not exist
            ExhaustedRetriesError: If every attempt failed
            MalformedResponseError: If the body is not a JSON object
        """
        url = self.repo_url(repo_id)
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected a JSON object from {url}")
        repository = RepositoryInfo.from_api(payload)
        logger.info(f"Fetched {repo_id.full_name}: {repository.stars} stars, {repository.forks} forks")
        return repository

    async def fetch_contributors(self, repo_id: RepositoryIdentifier) -> List[Contributor]:
        url = f"{self.repo_url(repo_id)}/contributors"
        payload = await self._get_json(url)
        if not isinstance(payload, list):
            return []
        return [Contributor.from_api(item) for item in payload if isinstance(item, dict)]

    async def fetch_releases(self, repo_id: RepositoryIdentifier) -> List[Release]:
        url = f"{self.repo_url(repo_id)}/releases"
        payload = await self._get_json(url)
        if not isinstance(payload, list):
            return []
        return [Release.from_api(item) for item in payload if isinstance(item, dict)]

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
        self._fetcher = None
