"""Tests for display helpers."""
import pytest

from repo_stats.application.formatting import format_date, format_release_notes, is_rate_limited
from repo_stats.domain.errors import ExhaustedRetriesError


def test_format_date():
    assert format_date("2025-01-01T00:00:00Z") == "Jan 1, 2025"
    assert format_date("2024-12-25T18:30:00+00:00") == "Dec 25, 2024"


@pytest.mark.parametrize("value", ["invalid-date", "", None])
def test_format_date_unknown(value):
    assert format_date(value) == "Unknown"


def test_format_release_notes():
    body = "# Highlights\r\n**Fast**\r\n\r\n\r\n\r\n## Fixes\r\n- bug"

    assert format_release_notes(body) == "### Highlights\n**Fast**\n\n### Fixes\n- bug"


def test_format_release_notes_empty():
    assert format_release_notes("") == "No release notes available."
    assert format_release_notes(None) == "No release notes available."


def test_is_rate_limited():
    assert is_rate_limited(ExhaustedRetriesError("url", attempts=3, status=403))
    assert is_rate_limited(RuntimeError("API rate limit exceeded"))
    assert not is_rate_limited(ExhaustedRetriesError("url", attempts=3, status=500, message="boom"))
