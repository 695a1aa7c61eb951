"""Tests for close-update and trade metric calculations."""

from datetime import timedelta
from decimal import Decimal

import pytest

from pnl_recon.core.trade_metrics import (
    build_close_update,
    build_unmatched_close_update,
    calculate_r_multiple,
    calculate_trade_metrics,
    classify_win_loss,
    estimate_close_fee,
    format_duration_hms,
    format_trade_time,
)
from pnl_recon.models import PnlMatchResult, PnlMatchType, WinLoss

from conftest import ENTRY_TIME


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "00:00"), (5400, "01:30"), (86399, "23:59"), (93600, "01:02:00"), (-5, "00:00")],
)
def test_format_trade_time(seconds, expected):
    assert format_trade_time(seconds) == expected


def test_format_duration_hms_does_not_wrap_days():
    assert format_duration_hms(3661) == "01:01:01"
    assert format_duration_hms(90000) == "25:00:00"


def test_r_multiple():
    assert calculate_r_multiple(Decimal("750"), Decimal("500")) == Decimal("1.5")
    assert calculate_r_multiple(Decimal("750"), None) is None
    assert calculate_r_multiple(Decimal("750"), Decimal("0")) is None


def test_classify_win_loss():
    assert classify_win_loss(Decimal("0.01")) == WinLoss.WIN
    assert classify_win_loss(Decimal("-3")) == WinLoss.LOSS
    assert classify_win_loss(Decimal("0")) == WinLoss.BREAKEVEN


def test_close_fee_estimate():
    assert estimate_close_fee(Decimal("30000"), Decimal("0.0006")) == Decimal("18.0000")


def test_build_close_update_from_match(make_trade, make_record):
    trade = make_trade(max_risk=Decimal("10"))
    record = make_record("X", closedPnl="-12.5", cumExitValue="1000")
    result = PnlMatchResult(
        match_type=PnlMatchType.TIME_MATCH, match=record, rule_order=5, candidate_count=1
    )
    close_time = ENTRY_TIME + timedelta(hours=2, minutes=3, seconds=4)

    update = build_close_update(trade, result, close_time, Decimal("0.0006"))

    assert update.status == "closed"
    assert update.pnl == Decimal("-12.5")
    assert update.finish_usd == Decimal("-12.5")
    assert update.finish_r == Decimal("-1.25")
    assert update.win_loss == WinLoss.LOSS
    assert update.close_price == Decimal("61250")
    assert update.avg_entry == Decimal("60000")
    assert update.close_fee == Decimal("0.6")
    assert update.total_trade_time == "02:03:04"
    assert update.total_trade_time_seconds == 7384
    assert update.pnl_match_type == PnlMatchType.TIME_MATCH
    assert update.details["orderId"] == "X"
    assert update.details["pnl_match_type"] == "time_match"


def test_build_close_update_requires_match():
    result = PnlMatchResult(match_type=PnlMatchType.NO_SYMBOL_MATCH, rule_order=2)

    with pytest.raises(ValueError):
        build_close_update(None, result, ENTRY_TIME, Decimal("0.0006"))


def test_unmatched_update_has_no_pnl_fields():
    update = build_unmatched_close_update(ENTRY_TIME)

    stored = update.to_storage_dict()
    assert stored["status"] == "closed"
    assert "pnl" not in stored
    assert "close_price" not in stored


def test_trade_metrics_for_long(make_trade, make_record):
    trade = make_trade(
        entry_price=Decimal("100"),
        stop_loss=Decimal("95"),
        take_profit=Decimal("115"),
        max_risk=Decimal("50"),
        open_fee=Decimal("1"),
    )
    record = make_record("X", closedPnl="-75", avgEntryPrice="100.4")
    close_time = ENTRY_TIME + timedelta(days=1, hours=2)

    metrics = calculate_trade_metrics(trade, record, close_time, Decimal("0.5"))

    assert metrics.risk_per_unit == Decimal("5")
    assert metrics.position_units == Decimal("10")
    assert metrics.position_notional == Decimal("1000")
    assert metrics.target_rr == Decimal("3")
    assert metrics.finished_rr == Decimal("-1.5")
    assert metrics.deviation_percent_from_max_risk == Decimal("50")
    assert metrics.slippage == Decimal("0.4")
    assert metrics.total_fees == Decimal("1.5")
    assert metrics.formatted_trade_time == "01:02:00"


def test_trade_metrics_for_short(make_trade, make_record):
    trade = make_trade(
        side="Sell",
        entry_price=Decimal("100"),
        stop_loss=Decimal("104"),
        take_profit=Decimal("92"),
        max_risk=Decimal("40"),
    )
    record = make_record("X", side="Buy", closedPnl="60", avgEntryPrice="100")

    metrics = calculate_trade_metrics(trade, record, ENTRY_TIME, Decimal("0"))

    assert metrics.risk_per_unit == Decimal("4")
    assert metrics.target_rr == Decimal("2")
    assert metrics.finished_rr == Decimal("1.5")
    assert metrics.deviation_percent_from_max_risk == Decimal("0")


def test_trade_metrics_need_entry_and_stop(make_trade, make_record):
    assert calculate_trade_metrics(make_trade(), make_record(), ENTRY_TIME, Decimal("0")) is None
