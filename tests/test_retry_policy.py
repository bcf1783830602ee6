"""Tests for the retry policy value object."""
from types import SimpleNamespace

import pytest

from repo_stats.domain.retry_policy import RetryPolicy


NOW = 1_000_000.0


def test_default_policy():
    """Test reference values: 3 attempts, 1 second base delay, 60 second window."""
    policy = RetryPolicy()

    assert policy.max_attempts == 3
    assert policy.base_delay == 1.0
    assert policy.rate_limit_window == 60.0


def test_backoff_is_linear():
    policy = RetryPolicy(base_delay=1.5)

    assert [policy.backoff(i) for i in range(3)] == [1.5, 3.0, 4.5]


def test_wait_strategy_matches_backoff():
    """Test the tenacity wait agrees with backoff() for each failed attempt."""
    policy = RetryPolicy(base_delay=2.0)
    wait = policy.wait_strategy()

    for attempt_index in range(4):
        state = SimpleNamespace(attempt_number=attempt_index + 1)
        assert wait(state) == policy.backoff(attempt_index)


@pytest.mark.parametrize("status", [200, 201, 204, 404])
def test_returnable_statuses(status):
    assert RetryPolicy().is_returnable(status)


@pytest.mark.parametrize("status", [301, 403, 429, 500, 502])
def test_non_returnable_statuses(status):
    assert not RetryPolicy().is_returnable(status)


def test_rate_limit_wait_uses_reset_header():
    policy = RetryPolicy()

    wait = policy.rate_limit_wait(403, {"X-RateLimit-Reset": str(int(NOW) + 3)}, NOW)

    assert wait == pytest.approx(3.0)


def test_rate_limit_wait_requires_header():
    assert RetryPolicy().rate_limit_wait(403, {}, NOW) is None


def test_rate_limit_wait_only_for_403():
    headers = {"X-RateLimit-Reset": str(int(NOW) + 3)}

    assert RetryPolicy().rate_limit_wait(429, headers, NOW) is None
    assert RetryPolicy().rate_limit_wait(500, headers, NOW) is None


@pytest.mark.parametrize("offset", [0, -5, 60, 3600])
def test_rate_limit_wait_outside_window(offset):
    """Test resets already past or a minute or more away fall through to backoff."""
    headers = {"X-RateLimit-Reset": str(int(NOW) + offset)}

    assert RetryPolicy().rate_limit_wait(403, headers, NOW) is None


def test_rate_limit_wait_ignores_garbage_header():
    assert RetryPolicy().rate_limit_wait(403, {"X-RateLimit-Reset": "soon"}, NOW) is None


def test_with_max_attempts_returns_copy():
    policy = RetryPolicy(base_delay=0.5)

    override = policy.with_max_attempts(5)

    assert override.max_attempts == 5
    assert override.base_delay == 0.5
    assert policy.max_attempts == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"base_delay": -1},
        {"rate_limit_window": 0},
        {"max_rate_limit_waits": -1},
    ],
)
def test_invalid_policy_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
