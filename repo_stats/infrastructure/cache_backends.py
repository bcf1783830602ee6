"""In-process and on-disk cache backends."""
import hashlib
import logging
from pathlib import Path
from typing import Dict, Optional, Union
from repo_stats.domain.cache_interface import ICacheBackend


logger = logging.getLogger(__name__)


class InMemoryCacheBackend(ICacheBackend):
    """Dictionary-backed storage, scoped to one process."""

    def __init__(self):
        self._entries: Dict[str, bytes] = {}

    def read(self, key: str) -> Optional[bytes]:
        return self._entries.get(key)

    def write(self, key: str, payload: bytes) -> None:
        self._entries[key] = payload

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class FileCacheBackend(ICacheBackend):
    """One file per key under a directory.

    File names are the SHA-1 of the key so any key is a safe path.
    """

    def __init__(self, directory: Union[str, Path]):
        """Initialize file storage.

        Args:
            directory: Where entries are written; created if missing
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def read(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def write(self, key: str, payload: bytes) -> None:
        path = self._path(key)
        # Write then rename so readers never see a partial entry
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_bytes(payload)
        tmp_path.replace(path)
        logger.debug(f"Wrote {len(payload)} bytes to {path}")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
