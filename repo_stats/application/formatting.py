"""Display helpers for snapshot consumers."""
import re
from datetime import datetime
from typing import Optional
from repo_stats.domain.errors import ExhaustedRetriesError


NO_RELEASE_NOTES = "No release notes available."


def format_date(value: Optional[str]) -> str:
    """Format an ISO-8601 timestamp as ``Jan 1, 2025``; ``Unknown`` if unparsable."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, TypeError, ValueError):
        return "Unknown"
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_release_notes(body: Optional[str]) -> str:
    """Normalize a release body for display.

    Line endings become ``\\n``, every heading becomes a level-3 heading and
    runs of blank lines collapse to one.
    """
    if not body:
        return NO_RELEASE_NOTES
    text = body.replace("\r\n", "\n")
    text = re.sub(r"^#+\s*", "### ", text, flags=re.MULTILINE)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def is_rate_limited(error: BaseException) -> bool:
    """Whether ``error`` looks like a GitHub rate-limit rejection."""
    if isinstance(error, ExhaustedRetriesError) and error.status == 403:
        return True
    message = str(error).lower()
    return "403" in message or "rate limit" in message
