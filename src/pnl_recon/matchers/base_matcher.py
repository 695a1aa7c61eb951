"""Base matcher shared by every closed-PnL matching rule."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union
import logging
from abc import ABC, abstractmethod

from ..models import ClosedPositionRecord, LocalTrade, PnlMatchResult, PnlMatchType
from ..config import ReconConfigManager

logger = logging.getLogger(__name__)

RuleInfo = dict[str, Union[str, int, float, list[str]]]


@dataclass(frozen=True)
class MatchStep:
    """Output of one rule: a final decision, or the narrowed candidates for the next rule."""

    candidates: Tuple[ClosedPositionRecord, ...] = ()
    result: Optional[PnlMatchResult] = None

    @property
    def is_decided(self) -> bool:
        return self.result is not None


class BaseMatcher(ABC):
    """Base class for all closed-PnL matching rules.

    Each rule is a total function of (trade, candidates). It never mutates
    the candidate sequence it is given.
    """

    rule_number: int = 0

    def __init__(self, config_manager: ReconConfigManager):
        """Initialize base matcher with configuration.

        Args:
            config_manager: Configuration manager for tolerances and side maps
        """
        self.config_manager = config_manager

        logger.debug(f"Initialized {self.__class__.__name__} (rule {self.rule_number})")

    def proceed(self, candidates: Sequence[ClosedPositionRecord]) -> MatchStep:
        """Hand the (possibly narrowed) candidates to the next rule."""
        return MatchStep(candidates=tuple(candidates))

    def decide(
        self,
        match_type: PnlMatchType,
        trade: LocalTrade,
        record: ClosedPositionRecord,
        candidate_count: int,
    ) -> MatchStep:
        """Finish the chain with a selected record."""
        result = PnlMatchResult(
            match_type=match_type,
            match=record,
            rule_order=self.rule_number,
            candidate_count=candidate_count,
            time_distance_ms=record.time_distance_ms(trade.entry_time_ms),
        )
        return MatchStep(result=result)

    def reject(self, match_type: PnlMatchType, candidate_count: int = 0) -> MatchStep:
        """Finish the chain without a match."""
        result = PnlMatchResult(
            match_type=match_type,
            match=None,
            rule_order=self.rule_number,
            candidate_count=candidate_count,
        )
        return MatchStep(result=result)

    @staticmethod
    def nearest_by_time(
        candidates: Sequence[ClosedPositionRecord], anchor_ms: int
    ) -> ClosedPositionRecord:
        """Pick the candidate whose createdTime is closest to ``anchor_ms``.

        Equidistant candidates keep their upstream order; the first one wins.

        Args:
            candidates: Non-empty candidate sequence
            anchor_ms: Trade entry time in epoch milliseconds

        Returns:
            The closest candidate
        """
        return min(candidates, key=lambda record: record.time_distance_ms(anchor_ms))

    @abstractmethod
    def evaluate(
        self, trade: LocalTrade, candidates: Sequence[ClosedPositionRecord]
    ) -> MatchStep:
        """Apply this rule.

        Must be implemented by each specific matcher.

        Args:
            trade: Local trade being reconciled
            candidates: Candidates left by the previous rule

        Returns:
            A decided step, or the candidates for the next rule
        """
        pass

    @abstractmethod
    def get_rule_info(self) -> RuleInfo:
        """Get information about this matching rule.

        Returns:
            Dictionary with rule metadata (name, description, fields, etc.)
        """
        pass
