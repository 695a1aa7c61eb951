"""Closed-PnL matching rule implementations."""

from .base_matcher import BaseMatcher, MatchStep
from .order_id_matcher import ExactOrderIdMatcher
from .symbol_matcher import SymbolMatcher
from .side_matcher import SideMatcher
from .quantity_matcher import QuantityToleranceMatcher
from .time_matcher import TimeProximityMatcher

__all__ = [
    "BaseMatcher",
    "MatchStep",
    "ExactOrderIdMatcher",
    "SymbolMatcher",
    "SideMatcher",
    "QuantityToleranceMatcher",
    "TimeProximityMatcher",
]
