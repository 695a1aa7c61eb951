"""Local trade data model for closed-PnL reconciliation."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ..utils import to_epoch_ms


class TradeSide(str, Enum):
    """Order direction as reported by the exchange."""
    BUY = "Buy"
    SELL = "Sell"

    @classmethod
    def parse(cls, value: Any) -> "TradeSide":
        """Parse loose side spellings ("buy", "B", "LONG", "Sell") into a TradeSide."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text in ("buy", "b", "long"):
            return cls.BUY
        if text in ("sell", "s", "short"):
            return cls.SELL
        raise ValueError(f"Unknown trade side: {value!r}")

    @property
    def opposite(self) -> "TradeSide":
        return TradeSide.SELL if self is TradeSide.BUY else TradeSide.BUY


class LocalTrade(BaseModel):
    """A locally recorded trade awaiting exchange-reported outcome data.

    Only symbol, side, quantity, order id and entry time take part in
    matching. The risk fields feed the R-multiple and trade metrics once a
    closed-PnL record has been attached.
    """

    model_config = ConfigDict(
        frozen=True,  # Inputs are never mutated during matching
        validate_assignment=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,  # API payloads arrive in camelCase
        populate_by_name=True,
    )

    # Core identification
    trade_id: Optional[str] = Field(default=None, description="Caller's trade identifier")
    symbol: str = Field(..., min_length=1, description="Instrument, may carry a perpetual suffix")
    side: TradeSide = Field(..., description="Side of the opening order")
    quantity: Optional[Decimal] = Field(default=None, description="Position size (signed or unsigned)")
    order_id: Optional[str] = Field(default=None, description="Exchange order id of the opening order")
    entry_timestamp: datetime = Field(..., description="When the trade was opened")
    status: Optional[str] = Field(default=None, description="Caller's trade status (open/closed)")

    # Risk context
    entry_price: Optional[Decimal] = Field(default=None, description="Planned entry price")
    stop_loss: Optional[Decimal] = Field(default=None, description="Stop loss price")
    take_profit: Optional[Decimal] = Field(default=None, description="Take profit price")
    max_risk: Optional[Decimal] = Field(default=None, description="Dollar amount risked")
    open_fee: Optional[Decimal] = Field(default=None, description="Fee paid when opening")

    @field_validator("side", mode="before")
    @classmethod
    def parse_side(cls, value: Any) -> TradeSide:
        return TradeSide.parse(value)

    @field_validator("order_id", "trade_id", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("entry_timestamp")
    @classmethod
    def ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def entry_time_ms(self) -> int:
        """Entry time as epoch milliseconds, the unit the exchange reports."""
        return to_epoch_ms(self.entry_timestamp)

    @property
    def quantity_magnitude(self) -> Optional[Decimal]:
        """Unsigned position size, or None when quantity is unknown."""
        if self.quantity is None:
            return None
        return abs(self.quantity)

    @property
    def is_closed(self) -> bool:
        return (self.status or "").strip().lower() == "closed"

    @property
    def display_id(self) -> str:
        """Get a display-friendly ID for logging and output."""
        return self.trade_id or self.order_id or f"{self.symbol}@{self.entry_time_ms}"

    def __str__(self) -> str:
        """String representation for debugging."""
        return (
            f"LocalTrade({self.display_id}: {self.symbol} {self.side.value} "
            f"{self.quantity} @ {self.entry_timestamp.isoformat()})"
        )
