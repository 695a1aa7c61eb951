"""Tests for the closed-position rule chain."""

from decimal import Decimal

import pytest

from pnl_recon.core import ClosedPositionMatcher
from pnl_recon.models import PnlMatchType

from conftest import wire_record


@pytest.fixture
def matcher(config_manager):
    return ClosedPositionMatcher(config_manager)


def test_quantity_tolerance_excludes_larger_close(matcher, make_trade, make_record):
    trade = make_trade()
    candidates = [
        make_record("X", offset_ms=2000, qty="0.01"),
        make_record("Y", offset_ms=500, qty="0.05"),
    ]

    result = matcher.match(trade, candidates)

    assert result.match_type == PnlMatchType.QUANTITY_TIME_MATCH
    assert result.match.order_id == "X"
    assert result.time_distance_ms == 2000
    assert result.rule_order == 4


def test_same_side_only_falls_back_to_nearest_same_side(matcher, make_trade, make_record):
    trade = make_trade()
    candidates = [make_record("Z", offset_ms=100, side="Buy", qty="0.01")]

    result = matcher.match(trade, candidates)

    assert result.match_type == PnlMatchType.SAME_SIDE_TIME_MATCH
    assert result.match.order_id == "Z"
    assert result.rule_order == 3


def test_empty_candidates_is_no_symbol_match(matcher, make_trade):
    result = matcher.match(make_trade(), [])

    assert result.match is None
    assert result.match_type == PnlMatchType.NO_SYMBOL_MATCH
    assert not result.is_match


def test_exact_order_id_wins_regardless_of_other_fields(matcher, make_trade, make_record):
    trade = make_trade(order_id="OID-1")
    candidates = [
        make_record("A", offset_ms=10, qty="0.01"),
        make_record("OID-1", offset_ms=9_000_000, symbol="ETHUSDT", side="Buy", qty="7"),
    ]

    result = matcher.match(trade, candidates)

    assert result.match_type == PnlMatchType.EXACT_ORDER_ID
    assert result.match.order_id == "OID-1"
    assert result.rule_order == 1


def test_order_id_without_matching_record_continues_chain(matcher, make_trade, make_record):
    trade = make_trade(order_id="missing")

    result = matcher.match(trade, [make_record("A", qty="0.01")])

    assert result.match_type == PnlMatchType.QUANTITY_TIME_MATCH
    assert result.match.order_id == "A"


def test_no_record_on_symbol_is_no_symbol_match(matcher, make_trade, make_record):
    trade = make_trade(symbol="SOLUSDTPERP")
    candidates = [make_record("A"), make_record("B", side="Buy")]

    result = matcher.match(trade, candidates)

    assert result.match is None
    assert result.match_type == PnlMatchType.NO_SYMBOL_MATCH
    assert result.candidate_count == 2


def test_symbol_comparison_ignores_case_and_suffix(matcher, make_trade, make_record):
    trade = make_trade(symbol=" btcusdtperp ")

    result = matcher.match(trade, [make_record("A", symbol="btcusdt")])

    assert result.match is not None
    assert result.match.order_id == "A"


def test_quantity_exactly_at_tolerance_is_excluded(matcher, make_trade, make_record):
    trade = make_trade(quantity=Decimal("1"))
    candidates = [
        make_record("AT", offset_ms=100, qty="1.01"),
        make_record("FAR", offset_ms=5000, qty="3"),
    ]

    result = matcher.match(trade, candidates)

    # Neither qualifies on quantity, so the time rule picks the nearest
    assert result.match_type == PnlMatchType.TIME_MATCH
    assert result.match.order_id == "AT"


def test_quantity_just_inside_tolerance_is_included(matcher, make_trade, make_record):
    trade = make_trade(quantity=Decimal("1"))
    candidates = [
        make_record("NEAR", offset_ms=100, qty="3"),
        make_record("IN", offset_ms=5000, qty="1.0099"),
    ]

    result = matcher.match(trade, candidates)

    assert result.match_type == PnlMatchType.QUANTITY_TIME_MATCH
    assert result.match.order_id == "IN"


def test_quantity_compared_by_magnitude(matcher, make_trade, make_record):
    trade = make_trade(quantity=Decimal("-2"), side="Sell")

    result = matcher.match(trade, [make_record("S", side="Buy", qty="2")])

    assert result.match_type == PnlMatchType.QUANTITY_TIME_MATCH


@pytest.mark.parametrize("quantity", [None, Decimal("0")])
def test_missing_quantity_skips_quantity_rule(matcher, make_trade, make_record, quantity):
    trade = make_trade(quantity=quantity)
    candidates = [make_record("FAR", offset_ms=900), make_record("NEAR", offset_ms=-300)]

    result = matcher.match(trade, candidates)

    assert result.match_type == PnlMatchType.TIME_MATCH
    assert result.match.order_id == "NEAR"
    assert result.time_distance_ms == 300


def test_nearest_in_time_wins_tie_break(matcher, make_trade, make_record):
    trade = make_trade()
    candidates = [
        make_record("SLOW", offset_ms=500),
        make_record("FAST", offset_ms=-100),
    ]

    result = matcher.match(trade, candidates)

    assert result.match.order_id == "FAST"
    assert result.time_distance_ms == 100


def test_equal_distance_keeps_upstream_order(matcher, make_trade, make_record):
    trade = make_trade()
    candidates = [make_record("FIRST", offset_ms=-250), make_record("SECOND", offset_ms=250)]

    assert matcher.match(trade, candidates).match.order_id == "FIRST"
    assert matcher.match(trade, list(reversed(candidates))).match.order_id == "SECOND"


def test_opposite_side_preferred_over_nearer_same_side(matcher, make_trade, make_record):
    trade = make_trade()
    candidates = [
        make_record("SAME", offset_ms=1, side="Buy"),
        make_record("CLOSE", offset_ms=60_000, side="Sell"),
    ]

    result = matcher.match(trade, candidates)

    assert result.match.order_id == "CLOSE"


def test_sell_trade_closes_with_buy_record(matcher, make_trade, make_record):
    trade = make_trade(side="Sell", symbol="ETHUSDT", quantity=Decimal("2"))
    candidates = [
        make_record("B", symbol="ETHUSDT", side="Buy", qty="2"),
        make_record("S", symbol="ETHUSDT", side="Sell", qty="2", offset_ms=1),
    ]

    result = matcher.match(trade, candidates)

    assert result.match.order_id == "B"


def test_unrecognised_side_on_trade_symbol_is_no_side_match(matcher, make_trade):
    candidates, skipped = matcher.normalizer.normalize_records([wire_record("N", side="None")])

    result = matcher.match(make_trade(), candidates)

    assert skipped == 0
    assert result.match is None
    assert result.match_type == PnlMatchType.NO_SIDE_MATCH
    assert result.rule_order == 3
    assert result.candidate_count == 1


def test_closing_side_filter_runs_before_quantity(matcher, make_trade, make_record):
    trade = make_trade()
    candidates = [
        make_record("SAME", offset_ms=10, side="Buy", qty="0.01"),
        make_record("CLOSE", offset_ms=5000, qty="0.5"),
    ]

    result = matcher.match(trade, candidates)

    assert result.match_type == PnlMatchType.TIME_MATCH
    assert result.match.order_id == "CLOSE"


def test_match_does_not_mutate_inputs(matcher, make_trade, make_record):
    trade = make_trade()
    candidates = [make_record("A", offset_ms=400), make_record("B", offset_ms=-50, side="Buy")]
    snapshot = list(candidates)

    first = matcher.match(trade, candidates)
    second = matcher.match(trade, candidates)

    assert candidates == snapshot
    assert first.match == second.match


def test_rules_info_follows_processing_order(matcher):
    infos = matcher.get_rules_info()

    assert [info["rule_number"] for info in infos] == [1, 2, 3, 4, 5]
    assert all("outcomes" in info for info in infos)
