"""Closed-PnL reconciliation data models."""

from .trade import LocalTrade, TradeSide
from .closed_position import ClosedPositionRecord
from .match_result import PnlMatchResult, PnlMatchType
from .recon_status import EventLevel, ReconStatus, WinLoss
from .outcome import (
    ReconciliationOutcome,
    ReconEvent,
    TradeCloseUpdate,
    TradeMetrics,
)

__all__ = [
    "LocalTrade",
    "TradeSide",
    "ClosedPositionRecord",
    "PnlMatchResult",
    "PnlMatchType",
    "EventLevel",
    "ReconStatus",
    "WinLoss",
    "ReconciliationOutcome",
    "ReconEvent",
    "TradeCloseUpdate",
    "TradeMetrics",
]
