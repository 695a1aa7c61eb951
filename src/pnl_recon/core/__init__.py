"""Core components for closed-PnL reconciliation."""

from .closed_position_matcher import ClosedPositionMatcher
from .reconciliation_fetcher import ClosedPnlSource, ReconciliationFetcher
from .reconciliation_service import ReconciliationService
from .retry import backoff_delay_ms, with_retry

__all__ = [
    "ClosedPositionMatcher",
    "ClosedPnlSource",
    "ReconciliationFetcher",
    "ReconciliationService",
    "backoff_delay_ms",
    "with_retry",
]
