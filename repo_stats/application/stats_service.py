"""Stats service aggregating GitHub reads into a cached snapshot."""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, List, Optional
from repo_stats.domain.errors import AggregateFailure
from repo_stats.domain.github_interface import IGitHubClient
from repo_stats.domain.models import (
    Contributor,
    Release,
    RepositoryIdentifier,
    RepositoryInfo,
    StatsSnapshot,
    top_contributors,
)
from repo_stats.infrastructure.cache_store import CacheStore


logger = logging.getLogger(__name__)

STATS_RESOURCE = "stats"
REPO_RESOURCE = "repo"
CONTRIBUTORS_RESOURCE = "contributors"
RELEASES_RESOURCE = "releases"
CACHED_RESOURCES = (STATS_RESOURCE, REPO_RESOURCE, CONTRIBUTORS_RESOURCE, RELEASES_RESOURCE)


class FetchStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class StatsService:
    """Application service producing repository statistics snapshots.

    Orchestrates the cache and the three GitHub reads. Repository info is
    load-bearing; contributors and releases are best-effort and degrade to
    empty lists. ``get_stats`` never raises: when the repository cannot be
    read it returns the zeroed fallback snapshot and records the failure
    in :attr:`error`.
    """

    def __init__(
        self,
        github_client: IGitHubClient,
        cache: CacheStore,
        provider: str = "github"
    ):
        """Initialize stats service.

        Args:
            github_client: GitHub API client implementation
            cache: Cache store shared by every key of a repository
            provider: Prefix of every cache key
        """
        self._github_client = github_client
        self._cache = cache
        self._provider = provider

        self.status = FetchStatus.IDLE
        self.error: Optional[str] = None
        self.snapshot: Optional[StatsSnapshot] = None
        self.repository: Optional[RepositoryInfo] = None
        self.contributors: List[Contributor] = []
        self.releases: List[Release] = []

    @property
    def is_loading(self) -> bool:
        return self.status is FetchStatus.LOADING

    def cache_keys(self, repo_id: RepositoryIdentifier) -> List[str]:
        """Every cache key owned by ``repo_id``."""
        return [repo_id.cache_key(self._provider, resource) for resource in CACHED_RESOURCES]

    async def get_stats(self, repo_id: RepositoryIdentifier) -> StatsSnapshot:
        """Return the statistics snapshot, from cache when fresh.

        Args:
            repo_id: Repository to describe

        Returns:
            The live or cached snapshot, or the fallback snapshot on failure
        """
        return await self._load_stats(repo_id, use_cache=True)

    async def refresh(self, repo_id: RepositoryIdentifier) -> StatsSnapshot:
        """Drop every cached entry of ``repo_id`` and fetch fresh data.

        Cached entries are not consulted even if clearing them failed.
        """
        logger.info(f"Refreshing stats for {repo_id.full_name}")
        self._cache.clear(self.cache_keys(repo_id))
        return await self._load_stats(repo_id, use_cache=False)

    async def _load_stats(self, repo_id: RepositoryIdentifier, use_cache: bool) -> StatsSnapshot:
        self.status = FetchStatus.LOADING
        self.error = None

        if use_cache:
            cached = self._read_cached_snapshot(repo_id)
            if cached is not None:
                logger.info(f"Using cached stats for {repo_id.full_name}")
                return self._finish(cached)

        try:
            snapshot = await self._fetch_snapshot(repo_id, use_cache)
        except AggregateFailure as e:
            logger.error(f"Failed to fetch GitHub stats for {repo_id.full_name}: {e}")
            self.error = str(e)
            self.snapshot = StatsSnapshot.fallback()
            self.status = FetchStatus.ERROR
            return self.snapshot

        self._cache.set(repo_id.cache_key(self._provider, STATS_RESOURCE), snapshot.to_dict())
        return self._finish(snapshot)

    def latest_release(self) -> Optional[Release]:
        return self.releases[0] if self.releases else None

    def top_contributors(self, limit: int = 10) -> List[Contributor]:
        return top_contributors(self.contributors, limit)

    def _finish(self, snapshot: StatsSnapshot) -> StatsSnapshot:
        self.snapshot = snapshot
        self.status = FetchStatus.READY
        return snapshot

    def _read_cached_snapshot(self, repo_id: RepositoryIdentifier) -> Optional[StatsSnapshot]:
        cached = self._cache.get(repo_id.cache_key(self._provider, STATS_RESOURCE))
        if cached is None:
            return None
        try:
            return StatsSnapshot.from_dict(cached)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cached stats for {repo_id.full_name}: {e}")
            return None

    async def _fetch_snapshot(self, repo_id: RepositoryIdentifier, use_cache: bool = True) -> StatsSnapshot:
        """Run the three reads concurrently and compose them once all have settled.

        Raises:
            AggregateFailure: If the repository info could not be obtained
        """
        logger.info(f"Fetching stats for {repo_id.full_name}")
        repository, contributors, releases = await asyncio.gather(
            self._load_repository(repo_id, use_cache),
            self._load_contributors(repo_id, use_cache),
            self._load_releases(repo_id, use_cache),
            return_exceptions=True
        )

        if isinstance(repository, BaseException):
            if isinstance(repository, AggregateFailure):
                raise repository
            raise AggregateFailure(f"Failed to fetch repository data: {repository}") from repository
        # The best-effort loaders swallow their own errors
        contributors = contributors if isinstance(contributors, list) else []
        releases = releases if isinstance(releases, list) else []

        snapshot = StatsSnapshot.compose(repository, contributors, releases)
        logger.info(
            f"Composed stats for {repo_id.full_name}: {snapshot.stars} stars, "
            f"{snapshot.forks} forks, {snapshot.contributors} contributors, "
            f"{snapshot.releases} releases, version {snapshot.version}"
        )
        return snapshot

    async def _load_repository(self, repo_id: RepositoryIdentifier, use_cache: bool = True) -> RepositoryInfo:
        key = repo_id.cache_key(self._provider, REPO_RESOURCE)
        cached = self._cached_resource(key, RepositoryInfo.from_api) if use_cache else None
        if cached is not None:
            self.repository = cached
            return cached

        try:
            repository = await self._github_client.fetch_repository(repo_id)
        except Exception as e:
            raise AggregateFailure(f"Failed to fetch repository data: {e}") from e

        self.repository = repository
        self._cache.set(key, repository.to_api())
        return repository

    async def _load_contributors(self, repo_id: RepositoryIdentifier, use_cache: bool = True) -> List[Contributor]:
        key = repo_id.cache_key(self._provider, CONTRIBUTORS_RESOURCE)
        cached = self._cached_list(key, Contributor.from_api) if use_cache else None
        if cached is not None:
            self.contributors = cached
            return cached

        try:
            contributors = await self._github_client.fetch_contributors(repo_id)
        except Exception as e:
            logger.warning(f"Failed to fetch contributors for {repo_id.full_name}: {e}")
            self.contributors = []
            return []

        self.contributors = contributors
        self._cache.set(key, [contributor.to_api() for contributor in contributors])
        return contributors

    async def _load_releases(self, repo_id: RepositoryIdentifier, use_cache: bool = True) -> List[Release]:
        key = repo_id.cache_key(self._provider, RELEASES_RESOURCE)
        cached = self._cached_list(key, Release.from_api) if use_cache else None
        if cached is not None:
            self.releases = cached
            return cached

        try:
            releases = await self._github_client.fetch_releases(repo_id)
        except Exception as e:
            logger.warning(f"Failed to fetch releases for {repo_id.full_name}: {e}")
            self.releases = []
            return []

        self.releases = releases
        self._cache.set(key, [release.to_api() for release in releases])
        return releases

    def _cached_resource(self, key: str, parse: Callable[[Any], Any]) -> Optional[Any]:
        cached = self._cache.get(key)
        if cached is None:
            return None
        try:
            return parse(cached)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cache entry {key}: {e}")
            return None

    def _cached_list(self, key: str, parse: Callable[[Any], Any]) -> Optional[List[Any]]:
        def parse_list(items: Any) -> List[Any]:
            if not isinstance(items, list):
                raise TypeError(f"expected a list, got {type(items).__name__}")
            return [parse(item) for item in items]

        return self._cached_resource(key, parse_list)
