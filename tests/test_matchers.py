"""Tests for the individual matching rules."""

from decimal import Decimal

from pnl_recon.matchers import (
    ExactOrderIdMatcher,
    QuantityToleranceMatcher,
    SideMatcher,
    SymbolMatcher,
    TimeProximityMatcher,
)
from pnl_recon.models import PnlMatchType, TradeSide


def test_order_id_rule_passes_candidates_through_without_order_id(
    config_manager, make_trade, make_record
):
    candidates = [make_record("A"), make_record("B")]

    step = ExactOrderIdMatcher(config_manager).evaluate(make_trade(), candidates)

    assert not step.is_decided
    assert step.candidates == tuple(candidates)


def test_symbol_rule_narrows_to_symbol(config_manager, make_trade, make_record):
    candidates = [make_record("A"), make_record("B", symbol="ETHUSDT")]

    step = SymbolMatcher(config_manager).evaluate(make_trade(), candidates)

    assert [r.order_id for r in step.candidates] == ["A"]


def test_side_rule_keeps_only_closing_side(config_manager, make_trade, make_record):
    candidates = [make_record("S", side="Sell"), make_record("B", side="Buy")]

    step = SideMatcher(config_manager).evaluate(make_trade(side="Buy"), candidates)

    assert not step.is_decided
    assert [r.order_id for r in step.candidates] == ["S"]


def test_side_rule_uses_configured_side_map(make_config_manager, make_trade, make_record):
    # An exchange that reports closes with the opening side
    manager = make_config_manager(
        matching={
            "exchange_profile": "same_side",
            "closing_side_maps": {"same_side": {"Buy": "Buy", "Sell": "Sell"}},
        }
    )
    candidates = [make_record("S", side="Sell"), make_record("B", side="Buy")]

    step = SideMatcher(manager).evaluate(make_trade(side="Buy"), candidates)

    assert SideMatcher(manager).closing_side(TradeSide.BUY) == TradeSide.BUY
    assert [r.order_id for r in step.candidates] == ["B"]


def test_side_rule_rejects_empty_set(config_manager, make_trade):
    step = SideMatcher(config_manager).evaluate(make_trade(), [])

    assert step.result.match_type == PnlMatchType.NO_SIDE_MATCH
    assert step.result.match is None


def test_quantity_rule_decides_nearest_within_tolerance(config_manager, make_trade, make_record):
    candidates = [
        make_record("FAR", offset_ms=3000, qty="0.01"),
        make_record("NEAR", offset_ms=-200, qty="0.01005"),
        make_record("OUT", offset_ms=1, qty="0.02"),
    ]

    step = QuantityToleranceMatcher(config_manager).evaluate(make_trade(), candidates)

    assert step.result.match_type == PnlMatchType.QUANTITY_TIME_MATCH
    assert step.result.match.order_id == "NEAR"
    assert step.result.candidate_count == 2


def test_quantity_rule_passes_through_when_nothing_qualifies(
    config_manager, make_trade, make_record
):
    candidates = [make_record("OUT", qty="0.5")]

    step = QuantityToleranceMatcher(config_manager).evaluate(make_trade(), candidates)

    assert not step.is_decided
    assert step.candidates == tuple(candidates)


def test_within_tolerance_is_strict(config_manager):
    rule = QuantityToleranceMatcher(config_manager)

    assert not rule.within_tolerance(Decimal("101"), Decimal("100"))
    assert not rule.within_tolerance(Decimal("99"), Decimal("100"))
    assert rule.within_tolerance(Decimal("100.99"), Decimal("100"))
    assert rule.within_tolerance(Decimal("-100.5"), Decimal("100"))


def test_time_rule_picks_nearest(config_manager, make_trade, make_record):
    candidates = [make_record("A", offset_ms=700), make_record("B", offset_ms=-600)]

    step = TimeProximityMatcher(config_manager).evaluate(make_trade(), candidates)

    assert step.result.match_type == PnlMatchType.TIME_MATCH
    assert step.result.match.order_id == "B"
    assert step.result.time_distance_ms == 600


def test_time_rule_rejects_empty_set(config_manager, make_trade):
    step = TimeProximityMatcher(config_manager).evaluate(make_trade(), [])

    assert step.result.match_type == PnlMatchType.NO_SIDE_MATCH
