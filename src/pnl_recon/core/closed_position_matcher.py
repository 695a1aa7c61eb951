"""Rule chain selecting the closed-PnL record that belongs to a local trade."""

import logging
from typing import Dict, List, Optional, Sequence

from ..config import ReconConfigManager
from ..matchers import (
    BaseMatcher,
    ExactOrderIdMatcher,
    QuantityToleranceMatcher,
    SideMatcher,
    SymbolMatcher,
    TimeProximityMatcher,
)
from ..matchers.base_matcher import RuleInfo
from ..models import ClosedPositionRecord, LocalTrade, PnlMatchResult
from ..normalizers import ClosedPnlNormalizer

logger = logging.getLogger(__name__)


class ClosedPositionMatcher:
    """Runs the matching rules in processing order; the first decision wins.

    Pure with respect to its inputs: the candidate list is copied into a
    tuple before the first rule runs and no state is kept between calls.
    """

    matchers: Dict[int, BaseMatcher]

    def __init__(
        self,
        config_manager: Optional[ReconConfigManager] = None,
        normalizer: Optional[ClosedPnlNormalizer] = None,
    ):
        """Initialize the matcher chain.

        Args:
            config_manager: Optional config manager. Creates default if None.
            normalizer: Optional normalizer shared with the symbol rule
        """
        self.config_manager = config_manager or ReconConfigManager()
        self.normalizer = normalizer or ClosedPnlNormalizer(self.config_manager)

        # Build matcher registry for rule lookup
        self.matchers = {
            1: ExactOrderIdMatcher(self.config_manager),
            2: SymbolMatcher(self.config_manager, self.normalizer),
            3: SideMatcher(self.config_manager),
            4: QuantityToleranceMatcher(self.config_manager),
            5: TimeProximityMatcher(self.config_manager),
        }
        self.processing_order = self.config_manager.get_processing_order()

        logger.debug(f"Initialized closed-position matcher with order {self.processing_order}")

    def match(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> PnlMatchResult:
        """Select the record most likely produced by closing ``trade``.

        Args:
            trade: Local trade being reconciled
            candidates: Closed-PnL records for the trade's symbol and window

        Returns:
            PnlMatchResult with the selected record, or no match and the reason
        """
        logger.info(
            f"Finding best PnL match for trade: Symbol={trade.symbol} "
            f"(formatted as {self.normalizer.normalize_symbol(trade.symbol)}), "
            f"Side={trade.side.value}, Qty={trade.quantity}, "
            f"OrderID={trade.order_id or 'N/A'}, candidates={len(candidates)}"
        )

        remaining = tuple(candidates)
        for rule_number in self.processing_order:
            matcher = self.matchers[rule_number]
            step = matcher.evaluate(trade, remaining)
            if step.result is not None:
                logger.info(f"Rule {rule_number} decided: {step.result.summary_line}")
                return step.result
            remaining = step.candidates

        raise RuntimeError("Matching chain ended without a decision")

    def get_rules_info(self) -> List[RuleInfo]:
        """Get metadata for every rule in processing order."""
        return [self.matchers[n].get_rule_info() for n in self.processing_order]
