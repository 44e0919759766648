import asyncio

import httpx
import pytest

from giligili.core.retry import RetryConfig, async_retry, calculate_delay, is_retryable_exception


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.twitch.tv/helix/streams")
    return httpx.HTTPStatusError("error", request=request, response=httpx.Response(code, request=request))


def test_delay_grows_exponentially_and_is_capped():
    config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=0)
    assert [calculate_delay(a, config) for a in range(4)] == [1.0, 2.0, 4.0, 5.0]


def test_delay_jitter_stays_within_bounds():
    config = RetryConfig(base_delay=2.0, jitter=0.1)
    for _ in range(50):
        assert 1.8 <= calculate_delay(0, config) <= 2.2


def test_only_transient_failures_are_retryable():
    config = RetryConfig()
    assert is_retryable_exception(status_error(503), config)
    assert is_retryable_exception(status_error(429), config)
    assert is_retryable_exception(httpx.ReadTimeout("slow"), config)
    assert not is_retryable_exception(status_error(404), config)
    assert not is_retryable_exception(ValueError("bad json"), config)


def test_non_retryable_error_is_raised_immediately():
    calls = []

    @async_retry(RetryConfig(max_attempts=3, base_delay=0))
    async def fetch():
        calls.append(1)
        raise ValueError("bad json")

    with pytest.raises(ValueError):
        asyncio.run(fetch())
    assert len(calls) == 1


def test_transient_error_is_retried_until_success():
    calls = []

    @async_retry(RetryConfig(max_attempts=3, base_delay=0, jitter=0))
    async def fetch():
        calls.append(1)
        if len(calls) < 3:
            raise httpx.ConnectError("refused")
        return "ok"

    assert asyncio.run(fetch()) == "ok"
    assert len(calls) == 3
