"""Quantity tolerance rule (Rule 4)."""

from decimal import Decimal
from typing import Sequence
import logging

from ..config import ReconConfigManager
from ..models import ClosedPositionRecord, LocalTrade, PnlMatchType
from .base_matcher import BaseMatcher, MatchStep, RuleInfo

logger = logging.getLogger(__name__)


class QuantityToleranceMatcher(BaseMatcher):
    """Rule 4: prefer records whose size is within a relative tolerance.

    Sizes are compared by magnitude. The tolerance is strict:
    ``|record - trade| / trade < tolerance``. Skipped when the trade has no
    (or zero) quantity.
    """

    rule_number = 4

    def __init__(self, config_manager: ReconConfigManager):
        super().__init__(config_manager)
        self.tolerance: Decimal = config_manager.get_quantity_tolerance()

    def within_tolerance(self, record_quantity: Decimal, trade_quantity: Decimal) -> bool:
        """Check the relative difference against the tolerance (strict)."""
        difference = abs(abs(record_quantity) - trade_quantity)
        return difference / trade_quantity < self.tolerance

    def evaluate(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> MatchStep:
        trade_quantity = trade.quantity_magnitude
        if not trade_quantity:
            return self.proceed(candidates)

        matches = [
            record
            for record in candidates
            if self.within_tolerance(record.quantity, trade_quantity)
        ]

        logger.debug(
            f"Found {len(matches)} records with matching quantity "
            f"(within {self.tolerance * 100}%): {trade_quantity}"
        )

        if not matches:
            return self.proceed(candidates)

        best = self.nearest_by_time(matches, trade.entry_time_ms)
        logger.info(
            f"Best match by quantity and time: closedPnl={best.closed_pnl}, "
            f"created={best.created_at.isoformat()}"
        )
        return self.decide(PnlMatchType.QUANTITY_TIME_MATCH, trade, best, len(matches))

    def get_rule_info(self) -> RuleInfo:
        return {
            "rule_number": self.rule_number,
            "name": "Quantity Tolerance",
            "description": "Nearest-in-time record among those within the quantity tolerance",
            "matched_fields": ["quantity", "created_time"],
            "outcomes": [PnlMatchType.QUANTITY_TIME_MATCH.value],
            "notes": f"Relative tolerance < {self.tolerance}",
        }
