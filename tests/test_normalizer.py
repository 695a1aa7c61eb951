"""Tests for symbol normalization and raw record parsing."""

from decimal import Decimal

import pytest

from pnl_recon.models import TradeSide
from pnl_recon.normalizers import ClosedPnlNormalizer


@pytest.fixture
def normalizer(config_manager):
    return ClosedPnlNormalizer(config_manager)


@pytest.mark.parametrize(
    "symbol, expected",
    [
        ("BTCUSDTPERP", "BTCUSDT"),
        ("btcusdtperp", "BTCUSDT"),
        ("  ETHUSDT ", "ETHUSDT"),
        ("PERP", "PERP"),
        ("", ""),
    ],
)
def test_normalize_symbol(normalizer, symbol, expected):
    assert normalizer.normalize_symbol(symbol) == expected


def test_longest_suffix_is_stripped_first(make_config_manager):
    manager = make_config_manager(matching={"perpetual_suffixes": ["PERP", ".PERP"]})

    assert ClosedPnlNormalizer(manager).normalize_symbol("BTCUSDT.PERP") == "BTCUSDT"


def test_normalize_records_converts_wire_fields(normalizer, raw_record):
    payload = raw_record("A", qty="-0.5", side="sell", cumExitValue="")

    records, skipped = normalizer.normalize_records([payload])

    record = records[0]
    assert skipped == 0
    assert record.side == TradeSide.SELL
    assert record.quantity == Decimal("-0.5")
    assert record.cum_exit_value == Decimal("0")
    assert record.closed_pnl == Decimal("12.5")
    assert isinstance(record.created_time, int)
    assert record.raw == payload


def test_normalize_records_counts_skipped(normalizer, raw_record):
    records, skipped = normalizer.normalize_records(
        [raw_record("A"), "not-a-record", raw_record("B", side="")]
    )

    assert [r.order_id for r in records] == ["A"]
    assert skipped == 2


def test_unrecognised_side_is_kept_as_reported(normalizer, raw_record):
    records, skipped = normalizer.normalize_records([raw_record("N", side=" None ")])

    assert skipped == 0
    assert records[0].side == "None"
    assert records[0].side not in (TradeSide.BUY, TradeSide.SELL)
