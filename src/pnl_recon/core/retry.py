"""Bounded retry with exponential backoff and jitter for upstream calls."""

import asyncio
import logging
import random
from functools import wraps
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

from ..config import RetryPolicy
from ..exceptions import ExchangeRequestError, ReconciliationFetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]
RandomFunc = Callable[[], float]


def backoff_delay_ms(
    policy: RetryPolicy, failures: int, rng: RandomFunc = random.random
) -> float:
    """Delay before the next attempt after ``failures`` consecutive failures.

    ``min(base * 2**failures, max) + rng() * jitter``; with the default
    policy the first retry waits 2-3s and the second 4-5s.

    Args:
        policy: Retry policy
        failures: Number of failed attempts so far (1-based)
        rng: Source of uniform values in [0, 1)

    Returns:
        Delay in milliseconds
    """
    exponential = min(policy.base_delay_ms * (2 ** failures), policy.max_delay_ms)
    return exponential + rng() * policy.jitter_ms


def with_retry(
    policy: RetryPolicy,
    *,
    operation_name: str = "Upstream request",
    retry_on: Tuple[Type[BaseException], ...] = (ExchangeRequestError,),
    sleep: SleepFunc = asyncio.sleep,
    rng: RandomFunc = random.random,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator retrying a coroutine function under ``policy``.

    Only exceptions in ``retry_on`` count as failures; anything else
    propagates immediately. When every attempt fails the last error is
    wrapped in ReconciliationFetchError.

    Args:
        policy: Attempt cap and backoff parameters
        operation_name: Name of the operation for logging purposes
        retry_on: Exception types that trigger a retry
        sleep: Awaitable sleep taking seconds (injected in tests)
        rng: Jitter source (injected in tests)

    Returns:
        Decorated coroutine function
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempts = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    attempts += 1
                    logger.error(f"{operation_name} attempt {attempts} failed: {e}")

                    if attempts >= policy.max_attempts:
                        raise ReconciliationFetchError(
                            f"{operation_name} failed after {attempts} attempts",
                            attempts=attempts,
                            last_error=e,
                        ) from e

                    delay_ms = backoff_delay_ms(policy, attempts, rng)
                    logger.info(f"Retrying in {round(delay_ms)}ms...")
                    await sleep(delay_ms / 1000)

        return wrapper

    return decorator
