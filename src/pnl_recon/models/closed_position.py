"""Exchange-reported closed-position (closed PnL) record."""

from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from ..utils import from_epoch_ms
from .trade import TradeSide


class ClosedPositionRecord(BaseModel):
    """One entry of the exchange's closed-PnL ledger.

    Field aliases follow the Bybit V5 wire names so a raw list entry can be
    validated directly. ``side`` is the side of the closing order.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    order_id: str = Field(..., alias="orderId", min_length=1)
    symbol: str = Field(..., min_length=1, description="Exchange-native symbol, no suffix")
    side: str = Field(
        ..., min_length=1, description="Side of the closing order, Buy/Sell or exchange text such as None"
    )
    quantity: Decimal = Field(..., alias="qty", description="Closed size")
    closed_pnl: Decimal = Field(..., alias="closedPnl")
    avg_entry_price: Decimal = Field(..., alias="avgEntryPrice")
    avg_exit_price: Decimal = Field(..., alias="avgExitPrice")
    cum_entry_value: Decimal = Field(default=Decimal("0"), alias="cumEntryValue")
    cum_exit_value: Decimal = Field(default=Decimal("0"), alias="cumExitValue")
    created_time: int = Field(..., alias="createdTime", ge=0, description="Epoch milliseconds")

    order_type: Optional[str] = Field(default=None, alias="orderType")
    exec_type: Optional[str] = Field(default=None, alias="execType")
    leverage: Optional[str] = Field(default=None)
    updated_time: Optional[int] = Field(default=None, alias="updatedTime")

    # Original wire payload, kept for the audit trail stored with the trade
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)

    @field_validator("side", mode="before")
    @classmethod
    def parse_side(cls, value: Any) -> Any:
        # Unrecognised sides stay in play for the symbol rule and never match a side
        if value is None:
            return value
        try:
            return TradeSide.parse(value).value
        except ValueError:
            return str(value).strip()

    @field_validator("cum_entry_value", "cum_exit_value", mode="before")
    @classmethod
    def blank_value_to_zero(cls, value: Any) -> Any:
        # Bybit omits or blanks cumulative values on some partial closes
        if value is None or value == "":
            return Decimal("0")
        return value

    @field_validator("leverage", mode="before")
    @classmethod
    def leverage_to_str(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)

    @property
    def created_at(self):
        """Creation time as an aware UTC datetime."""
        return from_epoch_ms(self.created_time)

    def time_distance_ms(self, anchor_ms: int) -> int:
        """Absolute distance in milliseconds between this record and ``anchor_ms``."""
        return abs(self.created_time - anchor_ms)

    def __str__(self) -> str:
        """String representation for debugging."""
        return (
            f"ClosedPositionRecord({self.order_id}: {self.symbol} {self.side} "
            f"{self.quantity} pnl={self.closed_pnl} created={self.created_time})"
        )
