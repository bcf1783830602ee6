"""Runtime configuration loaded from environment variables."""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional
from repo_stats.domain.cache_interface import ICacheBackend
from repo_stats.domain.models import RepositoryIdentifier
from repo_stats.domain.retry_policy import RetryPolicy


logger = logging.getLogger(__name__)


CACHE_BACKENDS = ("memory", "file", "postgres")


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def get_connection_string(environ: Optional[Mapping[str, str]] = None) -> str:
    """Build PostgreSQL connection string from environment variables."""
    environ = os.environ if environ is None else environ
    host = environ.get("POSTGRES_HOST", "localhost")
    port = environ.get("POSTGRES_PORT", "5432")
    database = environ.get("POSTGRES_DB", "repo_stats")
    user = environ.get("POSTGRES_USER", "postgres")
    password = environ.get("POSTGRES_PASSWORD", "postgres")

    return f"host={host} port={port} dbname={database} user={user} password={password}"


@dataclass(frozen=True)
class Settings:
    """Settings for one stats client process."""
    repository: RepositoryIdentifier
    api_base: str = "https://api.github.com"
    cache_ttl_seconds: float = 600.0
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    request_timeout_seconds: float = 30.0
    cache_backend: str = "file"
    cache_dir: str = ".cache/repo_stats"

    def __post_init__(self) -> None:
        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(f"cache backend must be one of {', '.join(CACHE_BACKENDS)}")
        if self.cache_ttl_seconds < 0:
            raise ValueError("cache TTL must be >= 0")
        if self.max_retries < 1:
            raise ValueError("max retries must be >= 1")
        if self.retry_delay_seconds < 0:
            raise ValueError("retry delay must be >= 0")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request timeout must be > 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings; ``GITHUB_REPOSITORY`` (``owner/name``) is required.

        Raises:
            ValueError: If a variable is missing or malformed
        """
        environ = os.environ if environ is None else environ
        repository = environ.get("GITHUB_REPOSITORY", "").strip()
        if not repository:
            raise ValueError("GITHUB_REPOSITORY environment variable is required")

        return cls(
            repository=RepositoryIdentifier.parse(repository),
            api_base=environ.get("GITHUB_API_BASE", "https://api.github.com"),
            cache_ttl_seconds=_env_float(environ, "STATS_CACHE_TTL_SECONDS", 600.0),
            max_retries=_env_int(environ, "STATS_MAX_RETRIES", 3),
            retry_delay_seconds=_env_float(environ, "STATS_RETRY_DELAY_SECONDS", 1.0),
            request_timeout_seconds=_env_float(environ, "STATS_REQUEST_TIMEOUT_SECONDS", 30.0),
            cache_backend=environ.get("STATS_CACHE_BACKEND", "file").strip().lower(),
            cache_dir=environ.get("STATS_CACHE_DIR", ".cache/repo_stats"),
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_retries, base_delay=self.retry_delay_seconds)


def build_cache_backend(settings: Settings) -> ICacheBackend:
    """Instantiate the backend selected by ``STATS_CACHE_BACKEND``."""
    if settings.cache_backend == "memory":
        from repo_stats.infrastructure.cache_backends import InMemoryCacheBackend
        return InMemoryCacheBackend()
    if settings.cache_backend == "postgres":
        from repo_stats.infrastructure.postgres_cache import PostgresCacheBackend
        return PostgresCacheBackend(get_connection_string())
    from repo_stats.infrastructure.cache_backends import FileCacheBackend
    return FileCacheBackend(settings.cache_dir)


def open_cache_backend(settings: Settings) -> ICacheBackend:
    """Like :func:`build_cache_backend`, but falls back to memory if the backend cannot be opened.

    The cache is best-effort, so an unreachable database must not stop a fetch.
    """
    try:
        return build_cache_backend(settings)
    except Exception as e:
        logger.warning(f"Cache backend '{settings.cache_backend}' unavailable, using in-memory cache: {e}")
        from repo_stats.infrastructure.cache_backends import InMemoryCacheBackend
        return InMemoryCacheBackend()
