"""Tests for bounded retry with backoff."""

import asyncio

import pytest

from pnl_recon.config import RetryPolicy
from pnl_recon.core import backoff_delay_ms, with_retry
from pnl_recon.exceptions import (
    ExchangeAPIError,
    ExchangeNetworkError,
    ReconciliationFetchError,
)


class _FlakyCall:
    def __init__(self, failures, result="ok", error=None):
        self.failures = failures
        self.result = result
        self.error = error or ExchangeNetworkError("connection reset")
        self.calls = 0

    async def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


class _RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _retrying(call, sleep, policy=None, rng=lambda: 0.0):
    return with_retry(policy or RetryPolicy(), operation_name="Test call", sleep=sleep, rng=rng)(
        call
    )


def test_backoff_is_exponential_and_capped():
    policy = RetryPolicy()

    assert backoff_delay_ms(policy, 1, rng=lambda: 0.0) == 2000
    assert backoff_delay_ms(policy, 2, rng=lambda: 0.0) == 4000
    assert backoff_delay_ms(policy, 3, rng=lambda: 0.0) == 8000
    assert backoff_delay_ms(policy, 6, rng=lambda: 0.0) == 8000


def test_backoff_adds_bounded_jitter():
    policy = RetryPolicy()

    assert backoff_delay_ms(policy, 1, rng=lambda: 0.5) == 2500
    assert backoff_delay_ms(policy, 6, rng=lambda: 0.999) < 9000


def test_success_on_first_attempt_does_not_sleep():
    call = _FlakyCall(failures=0)
    sleep = _RecordingSleep()

    assert asyncio.run(_retrying(call, sleep)()) == "ok"
    assert call.calls == 1
    assert sleep.delays == []


def test_succeeds_after_transient_failures():
    call = _FlakyCall(failures=2, result=["record"])
    sleep = _RecordingSleep()

    assert asyncio.run(_retrying(call, sleep)()) == ["record"]
    assert call.calls == 3
    assert sleep.delays == [2.0, 4.0]


def test_exhaustion_raises_with_last_error():
    error = ExchangeAPIError("Bybit API error", ret_code=10002, ret_msg="invalid timestamp")
    call = _FlakyCall(failures=10, error=error)
    sleep = _RecordingSleep()

    with pytest.raises(ReconciliationFetchError) as excinfo:
        asyncio.run(_retrying(call, sleep)())

    assert call.calls == 3
    assert excinfo.value.attempts == 3
    assert excinfo.value.last_error is error
    assert len(sleep.delays) == 2
    assert "retCode: 10002" in str(excinfo.value)


def test_attempt_cap_follows_policy():
    call = _FlakyCall(failures=10)

    with pytest.raises(ReconciliationFetchError):
        asyncio.run(_retrying(call, _RecordingSleep(), policy=RetryPolicy(max_attempts=1))())

    assert call.calls == 1


def test_non_retryable_error_propagates_immediately():
    call = _FlakyCall(failures=1, error=KeyError("bug"))
    sleep = _RecordingSleep()

    with pytest.raises(KeyError):
        asyncio.run(_retrying(call, sleep)())

    assert call.calls == 1
    assert sleep.delays == []
