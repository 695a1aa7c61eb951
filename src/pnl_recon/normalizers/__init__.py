"""Normalizers for symbols and closed-PnL payloads."""

from .closed_pnl_normalizer import ClosedPnlNormalizer

__all__ = ["ClosedPnlNormalizer"]
