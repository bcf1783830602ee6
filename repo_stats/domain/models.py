"""Domain models representing core business entities."""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple


DEFAULT_VERSION = "1.0.0"


def utc_now_iso() -> str:
    """Current UTC time in the ISO-8601 form GitHub uses (``...Z``)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class RepositoryIdentifier:
    """Immutable (owner, name) pair identifying a GitHub repository."""
    owner: str
    name: str

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise ValueError("Repository owner and name must be non-empty")
        if "/" in self.owner or "/" in self.name:
            raise ValueError(f"Invalid repository identifier: {self.owner}/{self.name}")

    @classmethod
    def parse(cls, full_name: str) -> "RepositoryIdentifier":
        """Build an identifier from ``owner/name``."""
        parts = (full_name or "").strip().split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Expected 'owner/name', got: {full_name!r}")
        return cls(owner=parts[0], name=parts[1])

    @property
    def full_name(self) -> str:
        """Returns the full repository name (owner/name)."""
        return f"{self.owner}/{self.name}"

    def cache_key(self, provider: str, resource: str) -> str:
        """Cache key of one logical resource, e.g. ``github-octo-hello-stats``."""
        return f"{provider}-{self.owner}-{self.name}-{resource}"


@dataclass(frozen=True)
class RepositoryInfo:
    """Repository metadata as returned by ``GET /repos/{owner}/{name}``."""
    full_name: str
    stars: int
    forks: int
    updated_at: Optional[str] = None
    watchers: int = 0
    open_issues: int = 0
    language: Optional[str] = None
    license_name: Optional[str] = None
    description: str = ""
    html_url: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "RepositoryInfo":
        license_data = payload.get("license") or {}
        return cls(
            full_name=payload.get("full_name") or "",
            stars=int(payload.get("stargazers_count") or 0),
            forks=int(payload.get("forks_count") or 0),
            updated_at=payload.get("updated_at"),
            watchers=int(payload.get("watchers_count") or 0),
            open_issues=int(payload.get("open_issues_count") or 0),
            language=payload.get("language"),
            license_name=license_data.get("name"),
            description=payload.get("description") or "",
            html_url=payload.get("html_url") or "",
        )

    def to_api(self) -> Dict[str, Any]:
        """Serialize back to the API's JSON shape (what the cache holds)."""
        return {
            "full_name": self.full_name,
            "stargazers_count": self.stars,
            "forks_count": self.forks,
            "updated_at": self.updated_at,
            "watchers_count": self.watchers,
            "open_issues_count": self.open_issues,
            "language": self.language,
            "license": {"name": self.license_name} if self.license_name else None,
            "description": self.description,
            "html_url": self.html_url,
        }


@dataclass(frozen=True)
class Contributor:
    login: str
    avatar_url: str
    profile_url: str
    contributions: int

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Contributor":
        return cls(
            login=payload.get("login") or "",
            avatar_url=payload.get("avatar_url") or "",
            profile_url=payload.get("html_url") or "",
            contributions=int(payload.get("contributions") or 0),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "login": self.login,
            "avatar_url": self.avatar_url,
            "html_url": self.profile_url,
            "contributions": self.contributions,
        }


@dataclass(frozen=True)
class Asset:
    name: str
    download_count: int
    download_url: str

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Asset":
        return cls(
            name=payload.get("name") or "",
            download_count=int(payload.get("download_count") or 0),
            download_url=payload.get("browser_download_url") or "",
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "download_count": self.download_count,
            "browser_download_url": self.download_url,
        }


@dataclass(frozen=True)
class Release:
    """A published release; the source lists them most recent first."""
    tag: str
    published_at: Optional[str]
    assets: Tuple[Asset, ...] = field(default_factory=tuple)
    name: str = ""
    html_url: str = ""
    body: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Release":
        return cls(
            tag=payload.get("tag_name") or "",
            published_at=payload.get("published_at"),
            assets=tuple(
                Asset.from_api(item)
                for item in payload.get("assets") or []
                if isinstance(item, dict)
            ),
            name=payload.get("name") or "",
            html_url=payload.get("html_url") or "",
            body=payload.get("body") or "",
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "tag_name": self.tag,
            "published_at": self.published_at,
            "assets": [asset.to_api() for asset in self.assets],
            "name": self.name,
            "html_url": self.html_url,
            "body": self.body,
        }


@dataclass(frozen=True)
class StatsSnapshot:
    """Merged, point-in-time view of a repository's public statistics.

    Always produced fresh, either by :meth:`compose` from live data or by
    :meth:`fallback` when the repository itself could not be fetched.
    """
    stars: int
    forks: int
    contributors: int
    releases: int
    last_update: str
    version: str

    @classmethod
    def compose(
        cls,
        repository: RepositoryInfo,
        contributors: Sequence[Contributor],
        releases: Sequence[Release],
    ) -> "StatsSnapshot":
        """Combine the three sub-queries into one snapshot."""
        version = releases[0].tag if releases and releases[0].tag else DEFAULT_VERSION
        return cls(
            stars=repository.stars,
            forks=repository.forks,
            contributors=len(contributors),
            releases=len(releases),
            last_update=repository.updated_at or utc_now_iso(),
            version=version,
        )

    @classmethod
    def fallback(cls, now: Optional[str] = None) -> "StatsSnapshot":
        """Zeroed snapshot returned when live data cannot be obtained."""
        return cls(
            stars=0,
            forks=0,
            contributors=0,
            releases=0,
            last_update=now or utc_now_iso(),
            version=DEFAULT_VERSION,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatsSnapshot":
        return cls(
            stars=int(data["stars"]),
            forks=int(data["forks"]),
            contributors=int(data["contributors"]),
            releases=int(data["releases"]),
            last_update=str(data["last_update"]),
            version=str(data["version"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stars": self.stars,
            "forks": self.forks,
            "contributors": self.contributors,
            "releases": self.releases,
            "last_update": self.last_update,
            "version": self.version,
        }


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the epoch-millisecond instant it was stored.

    Entries are replaced wholesale on every write and never mutated.
    """
    data: Any
    timestamp: int

    def is_valid(self, now_ms: int, ttl_ms: int) -> bool:
        return now_ms - self.timestamp < ttl_ms

    def to_bytes(self) -> bytes:
        return json.dumps({"data": self.data, "timestamp": self.timestamp}).encode("utf-8")

    @classmethod
    def from_bytes(cls, payload: bytes) -> "CacheEntry":
        """Decode a stored entry.

        Raises:
            ValueError: If the payload is not a JSON object with both fields
        """
        decoded = json.loads(payload.decode("utf-8"))
        if not isinstance(decoded, dict) or "data" not in decoded or "timestamp" not in decoded:
            raise ValueError("Cache entry must be an object with 'data' and 'timestamp'")
        return cls(data=decoded["data"], timestamp=int(decoded["timestamp"]))


def top_contributors(contributors: List[Contributor], limit: int = 10) -> List[Contributor]:
    """Contributors with the most contributions first, leaving the input untouched."""
    return sorted(contributors, key=lambda c: c.contributions, reverse=True)[:limit]
