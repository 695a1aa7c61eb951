"""Time proximity fallback rule (Rule 5)."""

from typing import Sequence
import logging

from ..models import ClosedPositionRecord, LocalTrade, PnlMatchType
from .base_matcher import BaseMatcher, MatchStep, RuleInfo

logger = logging.getLogger(__name__)


class TimeProximityMatcher(BaseMatcher):
    """Rule 5: the closing-side record nearest to the trade's entry time."""

    rule_number = 5

    def evaluate(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> MatchStep:
        if not candidates:
            return self.reject(PnlMatchType.NO_SIDE_MATCH)

        best = self.nearest_by_time(candidates, trade.entry_time_ms)
        logger.info(
            f"Best match by time only: closedPnl={best.closed_pnl}, "
            f"created={best.created_at.isoformat()}"
        )
        return self.decide(PnlMatchType.TIME_MATCH, trade, best, len(candidates))

    def get_rule_info(self) -> RuleInfo:
        return {
            "rule_number": self.rule_number,
            "name": "Time Proximity",
            "description": "Nearest record to the trade entry time",
            "matched_fields": ["created_time"],
            "outcomes": [PnlMatchType.TIME_MATCH.value],
        }
