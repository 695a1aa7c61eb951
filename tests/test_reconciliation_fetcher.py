"""Tests for retry-governed closed-PnL fetching."""

import asyncio

import pytest

from pnl_recon.config import MalformedRecordPolicy
from pnl_recon.core import ReconciliationFetcher
from pnl_recon.exceptions import (
    ExchangeHTTPError,
    MalformedCandidateError,
    ReconciliationFetchError,
)
from pnl_recon.exchange import ClosedPnlQuery

from conftest import ENTRY_MS

NOW_MS = ENTRY_MS + 3 * 3600 * 1000


class _FakeSource:
    def __init__(self, responses):
        self.responses = list(responses)
        self.queries = []

    async def fetch_closed_pnl(self, query):
        self.queries.append(query)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


async def _no_sleep(seconds):
    return None


def _fetcher(source, config_manager):
    return ReconciliationFetcher(
        source, config_manager, sleep=_no_sleep, rng=lambda: 0.0, clock=lambda: NOW_MS / 1000
    )


def test_query_window_spans_lookback_to_now(config_manager, make_trade):
    fetcher = _fetcher(_FakeSource([]), config_manager)

    query = fetcher.build_query(make_trade())

    assert query.symbol == "BTCUSDT"
    assert query.start_time_ms == ENTRY_MS - 24 * 3600 * 1000
    assert query.end_time_ms == NOW_MS
    assert query.limit == 200
    assert query.category == "linear"


def test_query_window_never_ends_before_it_starts(config_manager, make_trade):
    fetcher = _fetcher(_FakeSource([]), config_manager)

    query = fetcher.build_query(make_trade(), now_ms=0)

    assert query.end_time_ms == query.start_time_ms


def test_fetch_parses_records_in_upstream_order(config_manager, make_trade, raw_record):
    source = _FakeSource([[raw_record("B", offset_ms=5), raw_record("A", offset_ms=1)]])

    records = asyncio.run(_fetcher(source, config_manager).fetch_for_trade(make_trade()))

    assert [r.order_id for r in records] == ["B", "A"]
    assert source.queries[0].symbol == "BTCUSDT"


def test_fetch_retries_then_returns_records(config_manager, make_trade, raw_record):
    source = _FakeSource(
        [ExchangeHTTPError("HTTP error", status_code=503), [raw_record("A")]]
    )

    records = asyncio.run(_fetcher(source, config_manager).fetch_for_trade(make_trade()))

    assert [r.order_id for r in records] == ["A"]
    assert len(source.queries) == 2


def test_exhausted_fetch_raises_instead_of_returning_empty(config_manager, make_trade):
    source = _FakeSource([ExchangeHTTPError("HTTP error", status_code=500)] * 3)

    with pytest.raises(ReconciliationFetchError) as excinfo:
        asyncio.run(_fetcher(source, config_manager).fetch_for_trade(make_trade()))

    assert excinfo.value.attempts == 3
    assert len(source.queries) == 3


def test_empty_ledger_is_an_empty_list(config_manager, make_trade):
    records = asyncio.run(_fetcher(_FakeSource([[]]), config_manager).fetch_for_trade(make_trade()))

    assert records == []


def test_malformed_records_skipped_by_default(config_manager, make_trade, raw_record):
    source = _FakeSource(
        [[raw_record("BAD", qty="n/a"), raw_record("NOTIME", createdTime=None), raw_record("OK")]]
    )

    records = asyncio.run(_fetcher(source, config_manager).fetch_for_trade(make_trade()))

    assert [r.order_id for r in records] == ["OK"]


def test_malformed_record_fails_under_fail_policy(make_config_manager, make_trade, raw_record):
    manager = make_config_manager(matching={"malformed_record_policy": "fail"})
    assert manager.get_malformed_record_policy() == MalformedRecordPolicy.FAIL
    source = _FakeSource([[raw_record("OK"), raw_record("BAD", qty="n/a")]])

    with pytest.raises(MalformedCandidateError) as excinfo:
        asyncio.run(_fetcher(source, manager).fetch_for_trade(make_trade()))

    assert excinfo.value.order_id == "BAD"
    assert excinfo.value.index == 1


def test_fetch_closed_positions_uses_given_query(config_manager, raw_record):
    source = _FakeSource([[raw_record("A", symbol="ETHUSDT")]])
    query = ClosedPnlQuery(symbol="ETHUSDT", start_time_ms=1, end_time_ms=2, limit=50)

    records = asyncio.run(_fetcher(source, config_manager).fetch_closed_positions(query))

    assert source.queries == [query]
    assert records[0].symbol == "ETHUSDT"
