"""Match result data model for closed-PnL matching."""

from decimal import Decimal
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from .closed_position import ClosedPositionRecord


class PnlMatchType(str, Enum):
    """Which rule of the matching chain produced the decision."""

    EXACT_ORDER_ID = "exact_order_id"  # Rule 1 - order id equality
    SAME_SIDE_TIME_MATCH = "same_side_time_match"  # Rule 3 fallback - same side, nearest in time
    QUANTITY_TIME_MATCH = "quantity_time_match"  # Rule 4 - quantity within tolerance, nearest in time
    TIME_MATCH = "time_match"  # Rule 5 - nearest in time
    NO_SYMBOL_MATCH = "no_symbol_match"
    NO_SIDE_MATCH = "no_side_match"

    @property
    def is_match(self) -> bool:
        return self not in (PnlMatchType.NO_SYMBOL_MATCH, PnlMatchType.NO_SIDE_MATCH)


class PnlMatchResult(BaseModel):
    """Outcome of matching one local trade against closed-PnL candidates.

    Exactly one record or none. A missing match is a normal outcome and
    carries the reason in ``match_type``.
    """

    model_config = ConfigDict(
        frozen=True,  # Immutable for audit trail
        validate_assignment=True,
    )

    match_type: PnlMatchType = Field(..., description="Rule outcome")
    match: Optional[ClosedPositionRecord] = Field(
        default=None, description="Selected closed-PnL record, if any"
    )
    rule_order: int = Field(..., ge=1, description="Order of the rule that decided")
    candidate_count: int = Field(
        default=0, ge=0, description="Candidates left when the rule decided"
    )
    time_distance_ms: Optional[int] = Field(
        default=None, ge=0, description="Distance between match and trade entry"
    )
    match_timestamp: datetime = Field(
        default_factory=datetime.now, description="When this result was created"
    )

    @property
    def is_match(self) -> bool:
        return self.match is not None

    @property
    def realized_pnl(self) -> Optional[Decimal]:
        """Closed PnL of the selected record."""
        return self.match.closed_pnl if self.match else None

    @property
    def summary_line(self) -> str:
        """Get a one-line summary of this result for display."""
        if self.match is None:
            return f"No match | Rule: {self.rule_order} ({self.match_type.value})"
        return (
            f"Match {self.match.order_id} | {self.match.symbol} {self.match.side} "
            f"Qty: {self.match.quantity} | PnL: {self.match.closed_pnl} | "
            f"Δt: {self.time_distance_ms}ms | Rule: {self.rule_order} ({self.match_type.value})"
        )

    def __str__(self) -> str:
        """String representation for debugging."""
        order_id = self.match.order_id if self.match else None
        return f"PnlMatchResult({self.match_type.value}: {order_id})"
