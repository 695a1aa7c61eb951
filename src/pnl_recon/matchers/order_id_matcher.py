"""Exact order-id matching rule (Rule 1)."""

from typing import Sequence
import logging

from ..models import ClosedPositionRecord, LocalTrade, PnlMatchType
from .base_matcher import BaseMatcher, MatchStep, RuleInfo

logger = logging.getLogger(__name__)


class ExactOrderIdMatcher(BaseMatcher):
    """Rule 1: a record carrying the trade's own order id wins outright.

    Order ids are unique on the exchange, so symbol, side, quantity and time
    are not checked for this rule.
    """

    rule_number = 1

    def evaluate(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> MatchStep:
        if trade.order_id:
            for record in candidates:
                if record.order_id == trade.order_id:
                    logger.info(f"Found exact order ID match: {record.order_id}")
                    return self.decide(
                        PnlMatchType.EXACT_ORDER_ID, trade, record, len(candidates)
                    )

        logger.debug(
            f"No exact order ID match for {trade.display_id} (order_id={trade.order_id or 'N/A'})"
        )
        return self.proceed(candidates)

    def get_rule_info(self) -> RuleInfo:
        return {
            "rule_number": self.rule_number,
            "name": "Exact Order ID",
            "description": "Selects the record whose orderId equals the trade's order id",
            "matched_fields": ["order_id"],
            "outcomes": [PnlMatchType.EXACT_ORDER_ID.value],
            "notes": "Bypasses symbol, side, quantity and time checks",
        }
