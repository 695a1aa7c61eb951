"""TypedDict classes for JSON data structures used by the reconciliation engine."""

from typing import Any, TypedDict
from typing_extensions import NotRequired


# Bybit V5 closed-PnL wire shapes
class ClosedPnlWireRecord(TypedDict):
    """One entry of ``result.list`` from /v5/position/closed-pnl."""

    symbol: str
    orderId: str
    side: str
    qty: str
    closedPnl: str
    avgEntryPrice: str
    avgExitPrice: str
    createdTime: str
    # Optional fields
    cumEntryValue: NotRequired[str]
    cumExitValue: NotRequired[str]
    orderType: NotRequired[str]
    execType: NotRequired[str]
    leverage: NotRequired[str]
    updatedTime: NotRequired[str]
    orderPrice: NotRequired[str]
    closedSize: NotRequired[str]
    fillCount: NotRequired[str]


class ClosedPnlResult(TypedDict):
    """``result`` object of a closed-PnL response."""

    list: list[ClosedPnlWireRecord]
    category: NotRequired[str]
    nextPageCursor: NotRequired[str]


class ClosedPnlResponse(TypedDict):
    """Full closed-PnL response envelope."""

    retCode: int
    retMsg: str
    result: ClosedPnlResult
    retExtInfo: NotRequired[dict[str, Any]]
    time: NotRequired[int]


# Configuration file shapes
class MatchingConfigData(TypedDict):
    """``matching`` section of recon_config.json."""

    quantity_tolerance: str
    perpetual_suffixes: list[str]
    malformed_record_policy: str
    exchange_profile: str
    closing_side_maps: dict[str, dict[str, str]]


class RetryConfigData(TypedDict):
    """``retry`` section of recon_config.json."""

    max_attempts: int
    base_delay_ms: int
    max_delay_ms: int
    jitter_ms: int


class ExchangeConfigData(TypedDict):
    """``exchange`` section of recon_config.json."""

    mainnet_url: str
    testnet_url: str
    closed_pnl_endpoint: str
    category: str
    limit: int
    lookback_hours: int
    recv_window_ms: int
    request_timeout_seconds: float
    close_fee_rate: str


class ReconConfigData(TypedDict):
    """Top-level structure of recon_config.json."""

    matching: MatchingConfigData
    retry: RetryConfigData
    exchange: ExchangeConfigData
