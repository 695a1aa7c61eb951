"""Retry-governed acquisition of closed-PnL candidates for a local trade."""

import asyncio
import logging
import random
import time
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence

from ..config import ReconConfigManager
from ..exchange import ClosedPnlQuery
from ..models import ClosedPositionRecord, LocalTrade
from ..normalizers import ClosedPnlNormalizer
from .retry import RandomFunc, SleepFunc, with_retry

logger = logging.getLogger(__name__)

MS_PER_HOUR = 3600 * 1000


class ClosedPnlSource(Protocol):
    """Anything that performs one closed-PnL request (the Bybit client, or a fake)."""

    async def fetch_closed_pnl(self, query: ClosedPnlQuery) -> Sequence[Mapping[str, Any]]:
        ...


class ReconciliationFetcher:
    """Fetches closed-PnL candidates with bounded retry and backoff.

    The exchange ledger fills in asynchronously after a position closes, so
    a failed or stale read is retried up to the policy's attempt cap. After
    the cap the failure propagates as ReconciliationFetchError; an empty
    list is only ever returned when the exchange really reported none.
    """

    def __init__(
        self,
        source: ClosedPnlSource,
        config_manager: Optional[ReconConfigManager] = None,
        normalizer: Optional[ClosedPnlNormalizer] = None,
        sleep: SleepFunc = asyncio.sleep,
        rng: RandomFunc = random.random,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the fetcher.

        Args:
            source: Single-request closed-PnL source
            config_manager: Optional config manager. Creates default if None.
            normalizer: Optional normalizer for symbols and raw records
            sleep: Awaitable sleep used between attempts
            rng: Jitter source
            clock: Epoch-seconds clock anchoring the window end
        """
        self.source = source
        self.config_manager = config_manager or ReconConfigManager()
        self.normalizer = normalizer or ClosedPnlNormalizer(self.config_manager)
        self._clock = clock

        policy = self.config_manager.retry_policy
        self._fetch_with_retry = with_retry(
            policy,
            operation_name="Closed-PnL fetch",
            sleep=sleep,
            rng=rng,
        )(source.fetch_closed_pnl)

    def build_query(self, trade: LocalTrade, now_ms: Optional[int] = None) -> ClosedPnlQuery:
        """Build the lookup window for a trade: [entry - lookback, now].

        Args:
            trade: Local trade being reconciled
            now_ms: Window end in epoch milliseconds; defaults to the clock

        Returns:
            ClosedPnlQuery for the trade's exchange-native symbol
        """
        exchange = self.config_manager.exchange
        end_ms = now_ms if now_ms is not None else int(self._clock() * 1000)
        start_ms = max(0, trade.entry_time_ms - exchange.lookback_hours * MS_PER_HOUR)

        return ClosedPnlQuery(
            symbol=self.normalizer.normalize_symbol(trade.symbol),
            start_time_ms=start_ms,
            end_time_ms=max(end_ms, start_ms),
            limit=exchange.limit,
            category=exchange.category,
        )

    async def fetch_closed_positions(self, query: ClosedPnlQuery) -> List[ClosedPositionRecord]:
        """Fetch and parse closed-PnL records for a query.

        Args:
            query: Symbol and time window

        Returns:
            Parsed records in upstream order

        Raises:
            ReconciliationFetchError: Every attempt failed
            MalformedCandidateError: A record is malformed and the policy is FAIL
        """
        logger.info(
            f"Fetching closed PnL for {query.symbol} "
            f"from {query.start_time_ms} to {query.end_time_ms} (limit {query.limit})"
        )
        raw_records = await self._fetch_with_retry(query)
        records, _ = self.normalizer.normalize_records(raw_records)

        logger.info(f"Found {len(records)} closed PnL records for {query.symbol}")
        return records

    async def fetch_for_trade(self, trade: LocalTrade) -> List[ClosedPositionRecord]:
        """Fetch candidates for a trade using its default lookup window."""
        return await self.fetch_closed_positions(self.build_query(trade))
