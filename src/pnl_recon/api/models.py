"""Pydantic models for API request and response."""

from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Optional


_EXAMPLE_TRADE = {
    "tradeId": "42",
    "symbol": "BTCUSDTPERP",
    "side": "Buy",
    "quantity": "0.5",
    "orderId": "1f2e3d4c",
    "entryTimestamp": "2024-05-01T10:00:00Z",
    "entryPrice": "60000",
    "stopLoss": "59000",
    "takeProfit": "63000",
    "maxRisk": "500",
}

_EXAMPLE_CANDIDATE = {
    "orderId": "9a8b7c6d",
    "symbol": "BTCUSDT",
    "side": "Sell",
    "qty": "0.5",
    "closedPnl": "750.25",
    "avgEntryPrice": "60010",
    "avgExitPrice": "61510",
    "cumEntryValue": "30005",
    "cumExitValue": "30755",
    "createdTime": "1714560300000",
}


class MatchRequest(BaseModel):
    """Request model for matching one trade against supplied closed-PnL entries."""

    trade: dict[str, Any] = Field(..., description="Local trade record")
    candidates: list[dict[str, Any]] = Field(
        default_factory=list, description="Raw closed-PnL entries as returned by the exchange"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{"trade": _EXAMPLE_TRADE, "candidates": [_EXAMPLE_CANDIDATE]}]
        }
    )


class MatchResponse(BaseModel):
    """Result of a single match."""

    matchType: str
    pnlFound: bool
    ruleOrder: int
    candidateCount: int
    skippedCandidates: int = 0
    timeDistanceMs: Optional[int] = None
    match: Optional[dict[str, Any]] = None


class ReconcileRequest(BaseModel):
    """Request model for fetching, matching and closing one trade."""

    trade: dict[str, Any] = Field(..., description="Local trade record")
    apiKey: str = Field(..., min_length=1, description="Exchange API key")
    apiSecret: str = Field(..., min_length=1, description="Exchange API secret")
    testnet: bool = Field(default=False, description="Use the exchange testnet")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "trade": _EXAMPLE_TRADE,
                    "apiKey": "your-api-key",
                    "apiSecret": "your-api-secret",
                    "testnet": True,
                }
            ]
        }
    )


class ReconcileResponse(BaseModel):
    """Outcome of a reconciliation with the update the caller should store."""

    tradeId: Optional[str] = None
    status: str
    pnlFound: bool
    matchType: Optional[str] = None
    candidateCount: int = 0
    update: Optional[dict[str, Any]] = None
    metrics: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
