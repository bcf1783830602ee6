"""Cache backend interface (port) for persisting serialized entries.

Backends only move opaque bytes; expiry and serialization belong to the
cache store built on top of them.
"""
from abc import ABC, abstractmethod
from typing import Optional


class ICacheBackend(ABC):
    """Abstract key/value storage for cache entries."""

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """Return the stored payload, or None if the key is absent."""
        pass

    @abstractmethod
    def write(self, key: str, payload: bytes) -> None:
        """Store ``payload`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``. Missing keys are not an error."""
        pass

    def close(self) -> None:
        """Release resources held by the backend."""
        pass
