"""Symbol filtering rule (Rule 2)."""

from typing import Optional, Sequence
import logging

from ..config import ReconConfigManager
from ..models import ClosedPositionRecord, LocalTrade, PnlMatchType
from ..normalizers import ClosedPnlNormalizer
from .base_matcher import BaseMatcher, MatchStep, RuleInfo

logger = logging.getLogger(__name__)


class SymbolMatcher(BaseMatcher):
    """Rule 2: keep records on the trade's instrument.

    The trade symbol is normalized first (perpetual suffix stripped) because
    the exchange reports native symbols.
    """

    rule_number = 2

    def __init__(
        self,
        config_manager: ReconConfigManager,
        normalizer: Optional[ClosedPnlNormalizer] = None,
    ):
        super().__init__(config_manager)
        self.normalizer = normalizer or ClosedPnlNormalizer(config_manager)

    def evaluate(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> MatchStep:
        symbol = self.normalizer.normalize_symbol(trade.symbol)
        matches = [record for record in candidates if record.symbol.upper() == symbol]

        logger.debug(f"Found {len(matches)} records with matching symbol: {symbol}")

        if not matches:
            return self.reject(PnlMatchType.NO_SYMBOL_MATCH, len(candidates))
        return self.proceed(matches)

    def get_rule_info(self) -> RuleInfo:
        return {
            "rule_number": self.rule_number,
            "name": "Symbol Filter",
            "description": "Keeps records whose symbol equals the normalized trade symbol",
            "matched_fields": ["symbol"],
            "outcomes": [PnlMatchType.NO_SYMBOL_MATCH.value],
            "notes": f"Strips suffixes {self.config_manager.get_perpetual_suffixes()} from the trade symbol",
        }
