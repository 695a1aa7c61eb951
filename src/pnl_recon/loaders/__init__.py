"""Input loaders."""

from .closed_pnl_json_loader import ClosedPnlJSONLoader, SavedClosedPnlSource
from .trade_csv_loader import TradeCSVLoader

__all__ = ["ClosedPnlJSONLoader", "SavedClosedPnlSource", "TradeCSVLoader"]
