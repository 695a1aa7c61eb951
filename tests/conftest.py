"""Shared factories for closed-PnL reconciliation tests."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

import pytest

from pnl_recon.config import ReconConfig, ReconConfigManager
from pnl_recon.models import ClosedPositionRecord, LocalTrade

ENTRY_TIME = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
ENTRY_MS = 1714557600000


def wire_record(order_id: str = "X", offset_ms: int = 1000, **overrides: Any) -> Dict[str, Any]:
    """A closed-PnL entry as the exchange returns it (all strings)."""
    record = {
        "orderId": order_id,
        "symbol": "BTCUSDT",
        "side": "Sell",
        "qty": "0.01",
        "closedPnl": "12.5",
        "avgEntryPrice": "60000",
        "avgExitPrice": "61250",
        "cumEntryValue": "600",
        "cumExitValue": "612.5",
        "createdTime": str(ENTRY_MS + offset_ms),
        "orderType": "Market",
        "execType": "Trade",
        "leverage": "10",
    }
    record.update(overrides)
    return record


@pytest.fixture
def config_manager() -> ReconConfigManager:
    return ReconConfigManager()


@pytest.fixture
def make_config_manager():
    """Build a config manager from in-memory section overrides."""

    def _make(**sections: Dict[str, Any]) -> ReconConfigManager:
        return ReconConfigManager.from_config(ReconConfig.model_validate(sections))

    return _make


@pytest.fixture
def make_trade():
    def _make(**overrides: Any) -> LocalTrade:
        values: Dict[str, Any] = {
            "trade_id": "t-1",
            "symbol": "BTCUSDTPERP",
            "side": "Buy",
            "quantity": Decimal("0.01"),
            "order_id": None,
            "entry_timestamp": ENTRY_TIME,
            "status": "open",
        }
        values.update(overrides)
        return LocalTrade(**values)

    return _make


@pytest.fixture
def make_record():
    def _make(order_id: str = "X", offset_ms: int = 1000, **overrides: Any) -> ClosedPositionRecord:
        payload = wire_record(order_id, offset_ms, **overrides)
        return ClosedPositionRecord.model_validate({**payload, "raw": payload})

    return _make


@pytest.fixture
def raw_record():
    return wire_record
