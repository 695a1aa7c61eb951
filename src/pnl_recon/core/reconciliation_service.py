"""End-to-end reconciliation of a local trade with the exchange closed-PnL feed."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Sequence

from ..config import ReconConfigManager
from ..exceptions import MalformedCandidateError, ReconciliationFetchError
from ..models import (
    ClosedPositionRecord,
    EventLevel,
    LocalTrade,
    ReconciliationOutcome,
    ReconEvent,
    ReconStatus,
)
from .closed_position_matcher import ClosedPositionMatcher
from .reconciliation_fetcher import ReconciliationFetcher
from .trade_metrics import (
    build_close_update,
    build_unmatched_close_update,
    calculate_trade_metrics,
)

logger = logging.getLogger(__name__)

EventSink = Callable[[ReconEvent], Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationService:
    """Fetches candidates, matches them and derives the close update.

    Storage is left to the caller: the outcome carries the update to write.
    Events go to an optional sink; a failing sink is logged and ignored.
    """

    def __init__(
        self,
        fetcher: ReconciliationFetcher,
        matcher: Optional[ClosedPositionMatcher] = None,
        config_manager: Optional[ReconConfigManager] = None,
        event_sink: Optional[EventSink] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config_manager = config_manager or fetcher.config_manager
        self.fetcher = fetcher
        self.matcher = matcher or ClosedPositionMatcher(self.config_manager, fetcher.normalizer)
        self.event_sink = event_sink
        self._clock = clock

    async def reconcile(self, trade: LocalTrade) -> ReconciliationOutcome:
        """Reconcile one trade.

        Args:
            trade: Local trade being closed

        Returns:
            ReconciliationOutcome (MATCHED, CLOSED_WITHOUT_PNL or ALREADY_CLOSED)

        Raises:
            ReconciliationFetchError: Candidates could not be fetched; trade left unchanged
            MalformedCandidateError: Malformed record under the FAIL policy
        """
        if trade.is_closed:
            logger.info(f"Trade {trade.display_id} is already closed")
            self._emit(
                EventLevel.WARNING,
                "Attempted to update an already closed trade",
                {"trade_id": trade.trade_id},
                trade,
            )
            return ReconciliationOutcome(
                trade_id=trade.trade_id, status=ReconStatus.ALREADY_CLOSED
            )

        try:
            candidates = await self.fetcher.fetch_for_trade(trade)
        except ReconciliationFetchError as e:
            self._emit(
                EventLevel.ERROR,
                "Failed to fetch closed PnL from exchange",
                {"error": str(e), "attempts": e.attempts},
                trade,
            )
            raise
        except MalformedCandidateError as e:
            self._emit(
                EventLevel.ERROR,
                "Malformed closed PnL record in exchange response",
                {"error": str(e), "order_id": e.order_id, "index": e.index},
                trade,
            )
            raise

        return self.resolve(trade, candidates)

    def resolve(
        self,
        trade: LocalTrade,
        candidates: Sequence[ClosedPositionRecord],
        close_time: Optional[datetime] = None,
    ) -> ReconciliationOutcome:
        """Match already-fetched candidates and build the close update.

        Args:
            trade: Local trade being closed
            candidates: Closed-PnL records for the trade
            close_time: Close timestamp; defaults to now

        Returns:
            ReconciliationOutcome for the trade
        """
        close_time = close_time or self._clock()
        result = self.matcher.match(trade, candidates)

        if result.match is None:
            logger.info(f"No matching closed PnL found for trade {trade.display_id}")
            self._emit(
                EventLevel.WARNING,
                "No matching closed PnL found in exchange response",
                {
                    "order_id": trade.order_id,
                    "symbol": trade.symbol,
                    "side": trade.side.value,
                    "match_type": result.match_type.value,
                    "candidate_count": len(candidates),
                },
                trade,
            )
            return ReconciliationOutcome(
                trade_id=trade.trade_id,
                status=ReconStatus.CLOSED_WITHOUT_PNL,
                match_result=result,
                update=build_unmatched_close_update(close_time),
                candidate_count=len(candidates),
            )

        fee_rate = self.config_manager.exchange.close_fee_rate
        update = build_close_update(trade, result, close_time, fee_rate)
        metrics = calculate_trade_metrics(
            trade, result.match, close_time, update.close_fee or Decimal("0")
        )

        logger.info(
            f"Successfully reconciled trade {trade.display_id} with realized PnL: {update.pnl}"
        )
        self._emit(
            EventLevel.INFO,
            "Successfully updated trade with PnL data from exchange",
            {
                "realized_pnl": str(update.pnl),
                "avg_entry_price": str(update.avg_entry),
                "avg_exit_price": str(update.close_price),
                "match_type": result.match_type.value,
                "win_loss": update.win_loss.value if update.win_loss else None,
                "finish_r": str(update.finish_r) if update.finish_r is not None else None,
            },
            trade,
        )
        return ReconciliationOutcome(
            trade_id=trade.trade_id,
            status=ReconStatus.MATCHED,
            match_result=result,
            update=update,
            metrics=metrics,
            candidate_count=len(candidates),
        )

    def _emit(
        self,
        level: EventLevel,
        message: str,
        details: Dict[str, Any],
        trade: LocalTrade,
    ) -> None:
        """Send an event to the sink; sink failures never affect reconciliation."""
        if self.event_sink is None:
            return
        event = ReconEvent(
            level=level, message=message, details=details, trade_id=trade.trade_id
        )
        try:
            self.event_sink(event)
        except Exception as e:
            logger.error(f"Error logging event '{message}': {e}")
