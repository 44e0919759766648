"""Retry with exponential backoff for calls to external HTTP APIs.

Only transport-level failures are retried here. Callers that aggregate
several upstream calls (the recommender) never retry on their own.
"""

import asyncio
import functools
import logging
import random
from dataclasses import dataclass, field
from typing import Callable, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    ConnectionError,
    asyncio.TimeoutError,
)

# 429 is included because Helix answers it when the rate-limit bucket is empty
TRANSIENT_STATUS_CODES = (429, 500, 502, 503, 504)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: float = 0.1  # +/- fraction of the computed delay
    retryable_exceptions: tuple = field(default_factory=lambda: TRANSIENT_EXCEPTIONS)
    retryable_status_codes: tuple = field(default_factory=lambda: TRANSIENT_STATUS_CODES)


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Delay before the retry following `attempt` (0-based)."""
    delay = min(config.base_delay * (config.exponential_base ** attempt), config.max_delay)
    spread = delay * config.jitter
    return max(0.0, delay + random.uniform(-spread, spread))


def is_retryable_exception(exc: Exception, config: RetryConfig) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in config.retryable_status_codes
    return isinstance(exc, config.retryable_exceptions)


def async_retry(config: RetryConfig | None = None):
    """
    Decorator for retrying async functions with exponential backoff.

    Usage:
        @async_retry(RetryConfig(max_attempts=3))
        async def fetch_streams():
            ...
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            for attempt in range(config.max_attempts):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_exception(e, config):
                        raise
                    if attempt == config.max_attempts - 1:
                        logger.error(
                            f"All {config.max_attempts} attempts failed for {func.__name__}: {e}"
                        )
                        raise
                    delay = calculate_delay(attempt, config)
                    logger.warning(
                        f"Retry {attempt + 1}/{config.max_attempts} for {func.__name__} "
                        f"after {type(e).__name__}: {e}. Waiting {delay:.2f}s"
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
