"""Exchange API clients."""

from .bybit_client import BybitClosedPnlClient, ClosedPnlQuery, ExchangeCredentials

__all__ = ["BybitClosedPnlClient", "ClosedPnlQuery", "ExchangeCredentials"]
