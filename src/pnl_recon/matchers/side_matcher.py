"""Side matching rule with same-side fallback (Rule 3)."""

from typing import Sequence
import logging

from ..config import ReconConfigManager
from ..models import ClosedPositionRecord, LocalTrade, PnlMatchType, TradeSide
from .base_matcher import BaseMatcher, MatchStep, RuleInfo

logger = logging.getLogger(__name__)


class SideMatcher(BaseMatcher):
    """Rule 3: keep records reported on the closing side of the trade.

    A close is normally reported with the side of the closing order
    (Buy trade -> Sell record). Some responses carry the opening side
    instead; when no closing-side record exists, the nearest same-side
    record is accepted as ``same_side_time_match``.
    """

    rule_number = 3

    def __init__(self, config_manager: ReconConfigManager):
        super().__init__(config_manager)
        self.closing_side_map = config_manager.get_closing_side_map()

    def closing_side(self, side: TradeSide) -> TradeSide:
        return self.closing_side_map.get(side, side.opposite)

    def evaluate(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> MatchStep:
        closing = self.closing_side(trade.side)
        closing_matches = [record for record in candidates if record.side == closing]

        logger.debug(f"Found {len(closing_matches)} records with closing side: {closing.value}")

        if closing_matches:
            return self.proceed(closing_matches)

        return self._same_side_fallback(trade, candidates)

    def _same_side_fallback(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> MatchStep:
        """Accept the nearest record reported on the opening side, if any."""
        same_side = [record for record in candidates if record.side == trade.side]

        if not same_side:
            logger.debug(f"No records on either side for {trade.display_id}")
            return self.reject(PnlMatchType.NO_SIDE_MATCH, len(candidates))

        best = self.nearest_by_time(same_side, trade.entry_time_ms)
        logger.info(
            f"Best match by time with same side ({trade.side.value}): "
            f"closedPnl={best.closed_pnl}, created={best.created_at.isoformat()}"
        )
        return self.decide(PnlMatchType.SAME_SIDE_TIME_MATCH, trade, best, len(same_side))

    def get_rule_info(self) -> RuleInfo:
        mapping = [f"{k.value}->{v.value}" for k, v in self.closing_side_map.items()]
        return {
            "rule_number": self.rule_number,
            "name": "Closing Side",
            "description": "Keeps closing-side records, falls back to nearest same-side record",
            "matched_fields": ["side (closing)"],
            "outcomes": [
                PnlMatchType.SAME_SIDE_TIME_MATCH.value,
                PnlMatchType.NO_SIDE_MATCH.value,
            ],
            "notes": f"Closing side map: {', '.join(mapping)}",
        }
