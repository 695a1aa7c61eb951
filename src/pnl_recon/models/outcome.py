"""Close-update, metrics and event models produced by a reconciliation."""

from decimal import Decimal
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict

from .match_result import PnlMatchResult, PnlMatchType
from .recon_status import EventLevel, ReconStatus, WinLoss


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TradeCloseUpdate(BaseModel):
    """Fields the caller writes back to the trade row.

    Price and PnL fields stay None when the trade is closed without a
    matching closed-PnL record.
    """

    model_config = ConfigDict(frozen=True)

    status: str = Field(default="closed")
    close_time: datetime = Field(default_factory=_utcnow)
    trade_close_exe_time: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    close_price: Optional[Decimal] = None
    avg_entry: Optional[Decimal] = None
    pnl: Optional[Decimal] = None
    finish_r: Optional[Decimal] = None
    finish_usd: Optional[Decimal] = None
    win_loss: Optional[WinLoss] = None
    close_fee: Optional[Decimal] = None
    trade_fee: Optional[Decimal] = None
    total_trade_time: Optional[str] = None
    total_trade_time_seconds: Optional[int] = None

    pnl_match_type: Optional[PnlMatchType] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    def to_storage_dict(self) -> Dict[str, Any]:
        """Serialize for a JSON column store, dropping unset price fields."""
        return self.model_dump(mode="json", exclude_none=True)


class TradeMetrics(BaseModel):
    """Risk and execution metrics for a closed trade."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    side: str
    wanted_entry: Decimal
    stop_loss: Decimal
    take_profit: Decimal
    max_risk: Decimal
    risk_per_unit: Decimal
    position_units: Decimal
    position_notional: Decimal
    target_rr: Decimal
    finished_rr: Decimal
    deviation_percent_from_max_risk: Decimal
    slippage: Decimal
    total_trade_time_seconds: int
    formatted_trade_time: str
    total_fees: Decimal


class ReconEvent(BaseModel):
    """A record for the caller's event log."""

    model_config = ConfigDict(frozen=True)

    level: EventLevel
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    trade_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class ReconciliationOutcome(BaseModel):
    """Result of reconciling one trade end to end."""

    model_config = ConfigDict(frozen=True)

    trade_id: Optional[str] = None
    status: ReconStatus
    match_result: Optional[PnlMatchResult] = None
    update: Optional[TradeCloseUpdate] = None
    metrics: Optional[TradeMetrics] = None
    candidate_count: int = Field(default=0, ge=0)

    @property
    def pnl_found(self) -> bool:
        return self.status == ReconStatus.MATCHED

    @property
    def match_type(self) -> Optional[PnlMatchType]:
        return self.match_result.match_type if self.match_result else None
