"""Service layer for the reconciliation API."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from ..config import ReconConfigManager
from ..core import ClosedPositionMatcher, ReconciliationFetcher, ReconciliationService
from ..exchange import BybitClosedPnlClient, ExchangeCredentials
from ..main import log_event
from ..models import LocalTrade
from ..normalizers import ClosedPnlNormalizer
from .models import MatchRequest, MatchResponse, ReconcileRequest, ReconcileResponse

logger = logging.getLogger(__name__)


class MatchService:
    """Pure matching of one trade against caller-supplied closed-PnL entries."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_manager = ReconConfigManager(config_path)
        self.normalizer = ClosedPnlNormalizer(self.config_manager)
        self.matcher = ClosedPositionMatcher(self.config_manager, self.normalizer)

    async def process_match(self, request: MatchRequest) -> MatchResponse:
        """
        Process a match request asynchronously.
        Wraps synchronous matching to avoid blocking the event loop.
        """
        return await asyncio.to_thread(self._process_sync, request)

    def _process_sync(self, request: MatchRequest) -> MatchResponse:
        # Raises ValidationError (a ValueError) for a malformed trade
        trade = LocalTrade.model_validate(request.trade)
        records, skipped = self.normalizer.normalize_records(request.candidates)

        result = self.matcher.match(trade, records)

        return MatchResponse(
            matchType=result.match_type.value,
            pnlFound=result.is_match,
            ruleOrder=result.rule_order,
            candidateCount=len(records),
            skippedCandidates=skipped,
            timeDistanceMs=result.time_distance_ms,
            match=result.match.raw if result.match else None,
        )


class ReconcileService:
    """Fetch, match and close-update derivation against the live exchange."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the service.

        Args:
            config_path: Optional config directory
            http_client: Optional shared AsyncClient (tests inject a mock transport)
        """
        self.config_manager = ReconConfigManager(config_path)
        self.normalizer = ClosedPnlNormalizer(self.config_manager)
        self.matcher = ClosedPositionMatcher(self.config_manager, self.normalizer)
        self.http_client = http_client

    async def process_reconcile(self, request: ReconcileRequest) -> ReconcileResponse:
        """Reconcile one trade with credentials supplied in the request.

        Raises:
            ValueError: Trade payload is invalid
            ReconciliationFetchError: Exchange could not be read within the retry budget
        """
        trade = LocalTrade.model_validate(request.trade)
        credentials = ExchangeCredentials(
            api_key=request.apiKey, api_secret=request.apiSecret, testnet=request.testnet
        )

        async with BybitClosedPnlClient(
            self.config_manager.exchange, credentials, http_client=self.http_client
        ) as client:
            fetcher = ReconciliationFetcher(client, self.config_manager, self.normalizer)
            service = ReconciliationService(
                fetcher, self.matcher, self.config_manager, event_sink=log_event
            )
            outcome = await service.reconcile(trade)

        logger.info(
            f"Reconciled trade {trade.display_id}: status={outcome.status.value}, "
            f"match_type={outcome.match_type.value if outcome.match_type else None}"
        )

        metrics: Optional[Dict[str, Any]] = (
            outcome.metrics.model_dump(mode="json") if outcome.metrics else None
        )
        return ReconcileResponse(
            tradeId=outcome.trade_id,
            status=outcome.status.value,
            pnlFound=outcome.pnl_found,
            matchType=outcome.match_type.value if outcome.match_type else None,
            candidateCount=outcome.candidate_count,
            update=outcome.update.to_storage_dict() if outcome.update else None,
            metrics=metrics,
        )
