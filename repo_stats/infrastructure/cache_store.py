"""Time-to-live cache store over a pluggable key/value backend."""
import logging
import time
from typing import Any, Callable, Iterable, Optional
from repo_stats.domain.cache_interface import ICacheBackend
from repo_stats.domain.models import CacheEntry


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 10 * 60


class CacheStore:
    """Best-effort cache with explicit timestamps.

    Reads and writes never raise: a broken backend degrades to cache
    misses so that fetching can always proceed.
    """

    def __init__(
        self,
        backend: ICacheBackend,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        """Initialize the cache store.

        Args:
            backend: Storage for serialized entries
            ttl_seconds: Maximum age at which an entry is still returned
            clock: Returns the current Unix time in seconds
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._backend = backend
        self._ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_ms / 1000

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value if it is younger than the TTL, else None.

        Stale entries are left in place; the next write replaces them.
        """
        try:
            payload = self._backend.read(key)
            if payload is None:
                return None
            entry = CacheEntry.from_bytes(payload)
        except Exception as e:
            logger.warning(f"Failed to read cached data for {key}: {e}")
            return None

        if not entry.is_valid(self._now_ms(), self._ttl_ms):
            logger.debug(f"Cache entry {key} is stale")
            return None

        logger.debug(f"Cache hit for {key}")
        return entry.data

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` stamped with the current time. Failures are logged only."""
        try:
            entry = CacheEntry(data=value, timestamp=self._now_ms())
            self._backend.write(key, entry.to_bytes())
        except Exception as e:
            logger.warning(f"Failed to cache data for {key}: {e}")

    def clear(self, keys: Iterable[str]) -> None:
        """Remove every key, continuing past individual failures."""
        for key in keys:
            try:
                self._backend.delete(key)
            except Exception as e:
                logger.warning(f"Failed to clear cache for {key}: {e}")

    def close(self) -> None:
        self._backend.close()
