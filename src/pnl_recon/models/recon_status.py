"""Reconciliation status enum for closed-PnL reconciliation outcomes."""

from enum import Enum


class ReconStatus(Enum):
    """Terminal status of one reconciliation attempt.

    - MATCHED: A closed-PnL record was attached to the trade
    - CLOSED_WITHOUT_PNL: Trade closed, no qualifying record yet; reconcile later
    - ALREADY_CLOSED: Trade was closed before this attempt; nothing written
    """

    MATCHED = "matched"
    CLOSED_WITHOUT_PNL = "closed_without_pnl"
    ALREADY_CLOSED = "already_closed"


class WinLoss(str, Enum):
    """Sign of the realized PnL."""

    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class EventLevel(str, Enum):
    """Severity of a reconciliation event-log record."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
