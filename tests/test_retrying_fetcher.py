"""Tests for the retrying fetcher."""
import aiohttp
import pytest

from repo_stats.domain.errors import ExhaustedRetriesError
from repo_stats.domain.retry_policy import RetryPolicy
from repo_stats.infrastructure.retrying_fetcher import RetryingFetcher


URL = "https://api.github.com/repos/octo/hello"


def make_fetcher(session, sleeper, clock, **policy_kwargs):
    return RetryingFetcher(session, policy=RetryPolicy(**policy_kwargs), sleep=sleeper, clock=clock)


def rate_limited(make_response, reset_at):
    return make_response(status=403, headers={"X-RateLimit-Reset": str(int(reset_at))})


@pytest.mark.asyncio
async def test_success_on_first_attempt(make_session, make_response, sleeper, clock):
    session = make_session({URL: [make_response(200, {"stargazers_count": 1})]})
    fetcher = make_fetcher(session, sleeper, clock)

    response = await fetcher.fetch(URL)

    assert response.ok
    assert response.payload == {"stargazers_count": 1}
    assert session.count(URL) == 1
    assert sleeper.calls == []


@pytest.mark.asyncio
async def test_not_found_returned_without_retry(make_session, make_response, sleeper, clock):
    session = make_session({URL: [make_response(404)]})
    fetcher = make_fetcher(session, sleeper, clock)

    response = await fetcher.fetch(URL)

    assert response.status == 404
    assert response.payload is None
    assert session.count(URL) == 1
    assert sleeper.calls == []


@pytest.mark.asyncio
async def test_server_error_retried_with_backoff(make_session, make_response, sleeper, clock):
    session = make_session({URL: [make_response(500), make_response(200, [])]})
    fetcher = make_fetcher(session, sleeper, clock)

    response = await fetcher.fetch(URL)

    assert response.payload == []
    assert session.count(URL) == 2
    assert sleeper.calls == [1.0]


@pytest.mark.asyncio
async def test_exhausted_retries_carry_last_status(make_session, make_response, sleeper, clock):
    session = make_session({URL: [make_response(500), make_response(502), make_response(503, reason="Unavailable")]})
    fetcher = make_fetcher(session, sleeper, clock)

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        await fetcher.fetch(URL)

    assert exc_info.value.status == 503
    assert exc_info.value.message == "Unavailable"
    assert exc_info.value.attempts == 3
    assert session.count(URL) == 3
    # Linear backoff between attempts, none after the last one
    assert sleeper.calls == [1.0, 2.0]


@pytest.mark.asyncio
async def test_max_attempts_override(make_session, make_response, sleeper, clock):
    session = make_session({URL: [make_response(500), make_response(500), make_response(200, {})]})
    fetcher = make_fetcher(session, sleeper, clock)

    with pytest.raises(ExhaustedRetriesError):
        await fetcher.fetch(URL, max_attempts=2)

    assert session.count(URL) == 2


@pytest.mark.asyncio
async def test_rate_limit_waits_until_reset(make_session, make_response, sleeper, clock):
    """Test a 403 with a reset 3 seconds away sleeps 3 seconds, then succeeds."""
    session = make_session({URL: [rate_limited(make_response, clock() + 3), make_response(200, {})]})
    fetcher = make_fetcher(session, sleeper, clock)

    response = await fetcher.fetch(URL)

    assert response.ok
    assert sleeper.calls == [pytest.approx(3.0)]
    assert session.count(URL) == 2


@pytest.mark.asyncio
async def test_rate_limit_wait_does_not_spend_an_attempt(make_session, make_response, sleeper, clock):
    session = make_session({URL: [rate_limited(make_response, clock() + 5), make_response(200, {})]})
    fetcher = make_fetcher(session, sleeper, clock, max_attempts=1)

    response = await fetcher.fetch(URL)

    assert response.ok
    assert sleeper.calls == [pytest.approx(5.0)]


@pytest.mark.asyncio
async def test_rate_limit_waits_are_capped(make_session, make_response, sleeper, clock):
    session = make_session({
        URL: [
            rate_limited(make_response, clock() + 3),
            rate_limited(make_response, clock() + 3),
        ]
    })
    fetcher = make_fetcher(session, sleeper, clock, max_attempts=1, max_rate_limit_waits=1)

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        await fetcher.fetch(URL)

    assert exc_info.value.status == 403
    assert sleeper.calls == [pytest.approx(3.0)]


@pytest.mark.asyncio
async def test_forbidden_without_reset_header_uses_backoff(make_session, make_response, sleeper, clock):
    session = make_session({URL: [make_response(403), make_response(200, {})]})
    fetcher = make_fetcher(session, sleeper, clock)

    await fetcher.fetch(URL)

    assert sleeper.calls == [1.0]


@pytest.mark.asyncio
async def test_distant_reset_uses_backoff(make_session, make_response, sleeper, clock):
    session = make_session({URL: [rate_limited(make_response, clock() + 120), make_response(200, {})]})
    fetcher = make_fetcher(session, sleeper, clock)

    await fetcher.fetch(URL)

    assert sleeper.calls == [1.0]


@pytest.mark.asyncio
async def test_network_error_retried(make_session, make_response, sleeper, clock):
    session = make_session({URL: [aiohttp.ClientConnectionError("reset by peer"), make_response(200, {})]})
    fetcher = make_fetcher(session, sleeper, clock)

    response = await fetcher.fetch(URL)

    assert response.ok
    assert sleeper.calls == [1.0]


@pytest.mark.asyncio
async def test_network_error_exhaustion(make_session, sleeper, clock):
    errors = [aiohttp.ClientConnectionError("dns failure") for _ in range(3)]
    session = make_session({URL: errors})
    fetcher = make_fetcher(session, sleeper, clock)

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        await fetcher.fetch(URL)

    assert exc_info.value.status is None
    assert "dns failure" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)


@pytest.mark.asyncio
async def test_invalid_json_body_retried(make_session, make_response, sleeper, clock):
    session = make_session({
        URL: [make_response(200, body_error=ValueError("Expecting value")), make_response(200, {"ok": True})]
    })
    fetcher = make_fetcher(session, sleeper, clock)

    response = await fetcher.fetch(URL)

    assert response.payload == {"ok": True}
    assert session.count(URL) == 2


@pytest.mark.asyncio
async def test_zero_base_delay(make_session, make_response, sleeper, clock):
    session = make_session({URL: [make_response(500), make_response(200, {})]})
    fetcher = make_fetcher(session, sleeper, clock, base_delay=0)

    await fetcher.fetch(URL)

    assert sleeper.calls == [0.0]
