"""Configuration management for closed-PnL reconciliation."""

from .config_manager import (
    ExchangeConfig,
    MalformedRecordPolicy,
    MatchingConfig,
    ReconConfig,
    ReconConfigManager,
    RetryPolicy,
)

__all__ = [
    "ExchangeConfig",
    "MalformedRecordPolicy",
    "MatchingConfig",
    "ReconConfig",
    "ReconConfigManager",
    "RetryPolicy",
]
