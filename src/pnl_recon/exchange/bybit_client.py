"""Bybit V5 closed-PnL client."""

import hashlib
import hmac
import logging
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..config import ExchangeConfig
from ..exceptions import ExchangeAPIError, ExchangeHTTPError, ExchangeNetworkError
from ..types.json_types import ClosedPnlResponse, ClosedPnlWireRecord

logger = logging.getLogger(__name__)


class ExchangeCredentials(BaseModel):
    """API key pair supplied by the caller for one reconciliation."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    api_key: str = Field(..., min_length=1)
    api_secret: SecretStr
    testnet: bool = False


class ClosedPnlQuery(BaseModel):
    """Parameters of one closed-PnL request."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1, description="Exchange-native symbol")
    start_time_ms: int = Field(..., ge=0)
    end_time_ms: int = Field(..., ge=0)
    limit: int = Field(default=200, ge=1, le=200)
    category: str = Field(default="linear")

    def to_params(self) -> Dict[str, str]:
        """Query parameters in the order they are signed and sent."""
        return {
            "category": self.category,
            "symbol": self.symbol,
            "startTime": str(self.start_time_ms),
            "endTime": str(self.end_time_ms),
            "limit": str(self.limit),
        }


class BybitClosedPnlClient:
    """Performs a single signed GET against the closed-PnL endpoint.

    No retry here: the caller wraps ``fetch_closed_pnl`` with a retry policy.
    Every failure is raised as an ExchangeRequestError subclass.
    """

    def __init__(
        self,
        exchange_config: ExchangeConfig,
        credentials: ExchangeCredentials,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the client.

        Args:
            exchange_config: Endpoint, timeout and recv window settings
            credentials: API key pair and network selection
            http_client: Optional shared AsyncClient; one is created (and owned) if None
            clock: Epoch-seconds clock used for request timestamps
        """
        self.exchange_config = exchange_config
        self.credentials = credentials
        self.base_url = exchange_config.base_url(credentials.testnet)
        self._clock = clock
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=exchange_config.request_timeout_seconds,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "BybitClosedPnlClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def sign(self, timestamp: str, query_string: str) -> str:
        """HMAC-SHA256 over timestamp + api key + recv window + query string."""
        recv_window = str(self.exchange_config.recv_window_ms)
        payload = f"{timestamp}{self.credentials.api_key}{recv_window}{query_string}"
        secret = self.credentials.api_secret.get_secret_value()
        return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()

    def build_headers(self, query_string: str) -> Dict[str, str]:
        timestamp = str(int(self._clock() * 1000))
        return {
            "X-BAPI-API-KEY": self.credentials.api_key,
            "X-BAPI-TIMESTAMP": timestamp,
            "X-BAPI-RECV-WINDOW": str(self.exchange_config.recv_window_ms),
            "X-BAPI-SIGN": self.sign(timestamp, query_string),
        }

    async def fetch_closed_pnl(self, query: ClosedPnlQuery) -> List[ClosedPnlWireRecord]:
        """Fetch one page of closed-PnL records.

        Args:
            query: Symbol, window and limit

        Returns:
            Raw entries of ``result.list`` (empty when the ledger has none yet)

        Raises:
            ExchangeNetworkError: Transport failure or timeout
            ExchangeHTTPError: Non-2xx HTTP status
            ExchangeAPIError: Unreadable body or non-zero retCode
        """
        query_string = urlencode(query.to_params())
        url = f"{self.exchange_config.closed_pnl_endpoint}?{query_string}"
        logger.info(f"Calling Bybit API: {self.base_url}{url}")

        try:
            response = await self._client.get(url, headers=self.build_headers(query_string))
        except httpx.HTTPError as e:
            raise ExchangeNetworkError(f"Network error calling closed-PnL endpoint: {e}") from e

        if not response.is_success:
            raise ExchangeHTTPError(
                "HTTP error from closed-PnL endpoint",
                status_code=response.status_code,
                value=response.text[:500],
            )

        try:
            data: ClosedPnlResponse = response.json()
        except ValueError as e:
            raise ExchangeAPIError(
                "Unreadable closed-PnL response body", value=response.text[:500]
            ) from e

        if not isinstance(data, dict):
            raise ExchangeAPIError("Closed-PnL response is not an object", value=str(data)[:500])

        ret_code = data.get("retCode")
        if ret_code != 0:
            raise ExchangeAPIError(
                "Bybit API error",
                ret_code=ret_code if isinstance(ret_code, int) else None,
                ret_msg=str(data.get("retMsg", "")),
            )

        result = data.get("result")
        records = (result.get("list") if isinstance(result, dict) else None) or []
        logger.info(
            f"Bybit API response: retCode={ret_code}, retMsg={data.get('retMsg')}, "
            f"list length={len(records)}"
        )
        for idx, record in enumerate(records[:3]):
            logger.debug(
                f"[{idx}] symbol={record.get('symbol')}, side={record.get('side')}, "
                f"orderId={record.get('orderId')}, qty={record.get('qty')}, "
                f"createdTime={record.get('createdTime')}"
            )
        return list(records)
