"""GitHub API interface (port) for reading repository statistics.

This is the anti-corruption layer that shields the domain from GitHub API specifics.
"""
from abc import ABC, abstractmethod
from typing import List
from repo_stats.domain.models import Contributor, Release, RepositoryIdentifier, RepositoryInfo


class IGitHubClient(ABC):
    """Abstract interface for the three read-only GitHub queries."""

    @abstractmethod
    async def fetch_repository(self, repo_id: RepositoryIdentifier) -> RepositoryInfo:
        """Fetch repository metadata (stars, forks, last update).

        Raises:
            FetchError: When the repository cannot be read
        """
        pass

    @abstractmethod
    async def fetch_contributors(self, repo_id: RepositoryIdentifier) -> List[Contributor]:
        """Fetch contributors in source order."""
        pass

    @abstractmethod
    async def fetch_releases(self, repo_id: RepositoryIdentifier) -> List[Release]:
        """Fetch releases, most recent first."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
