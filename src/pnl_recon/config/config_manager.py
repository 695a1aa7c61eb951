"""Configuration manager for closed-PnL reconciliation."""

import json
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator, model_validator

from ..models import TradeSide
from ..types.json_types import ReconConfigData

CONFIG_FILE_NAME = "recon_config.json"

# Rules run in this order; the time rule always decides
RULE_ORDER = (1, 2, 3, 4, 5)


class MalformedRecordPolicy(str, Enum):
    """What to do with a closed-PnL record whose fields cannot be parsed."""

    SKIP = "skip"  # Drop the record, log a warning, match on the rest
    FAIL = "fail"  # Abort the whole match with MalformedCandidateError


class MatchingConfig(BaseModel):
    """Tolerances and exchange conventions used by the matching rules."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",  # Rejects stale keys such as processing_order
        validate_assignment=True,  # Immutable configuration
    )

    quantity_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        lt=1,
        description="Relative quantity tolerance (strict less-than)",
    )
    perpetual_suffixes: list[str] = Field(
        default=["PERP"],
        description="Symbol suffixes stripped before comparing with exchange symbols",
    )
    malformed_record_policy: MalformedRecordPolicy = Field(
        default=MalformedRecordPolicy.SKIP,
        description="Handling of unparseable closed-PnL records",
    )
    exchange_profile: str = Field(
        default="bybit", description="Key into closing_side_maps"
    )
    closing_side_maps: dict[str, dict[TradeSide, TradeSide]] = Field(
        default={"bybit": {TradeSide.BUY: TradeSide.SELL, TradeSide.SELL: TradeSide.BUY}},
        description="Per-exchange mapping from opening side to reported closing side",
    )

    @field_validator("perpetual_suffixes")
    @classmethod
    def longest_suffix_first(cls, value: list[str]) -> list[str]:
        cleaned = [s.strip() for s in value if s and s.strip()]
        return sorted(cleaned, key=len, reverse=True)

    @model_validator(mode="after")
    def profile_must_exist(self) -> "MatchingConfig":
        side_map = self.closing_side_maps.get(self.exchange_profile)
        if side_map is None:
            raise ValueError(
                f"No closing side map configured for exchange profile '{self.exchange_profile}'"
            )
        missing = [side.value for side in TradeSide if side not in side_map]
        if missing:
            raise ValueError(
                f"Closing side map for '{self.exchange_profile}' is missing: {missing}"
            )
        return self

    @property
    def closing_side_map(self) -> dict[TradeSide, TradeSide]:
        """Closing-side mapping of the active exchange profile."""
        return self.closing_side_maps[self.exchange_profile]


class RetryPolicy(BaseModel):
    """Bounded exponential backoff with jitter for upstream fetches."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    base_delay_ms: int = Field(default=1000, ge=0)
    max_delay_ms: int = Field(default=8000, ge=0)
    jitter_ms: int = Field(default=1000, ge=0)


class ExchangeConfig(BaseModel):
    """Exchange endpoint and request parameters."""

    model_config = ConfigDict(frozen=True)

    mainnet_url: str = Field(default="https://api.bytick.com")
    testnet_url: str = Field(default="https://api-testnet.bybit.com")
    closed_pnl_endpoint: str = Field(default="/v5/position/closed-pnl")
    category: str = Field(default="linear")
    limit: int = Field(default=200, ge=1, le=200)
    lookback_hours: int = Field(default=24, ge=0)
    recv_window_ms: int = Field(default=5000, gt=0)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    close_fee_rate: Decimal = Field(
        default=Decimal("0.0006"), ge=0, description="Approximate taker fee on exit value"
    )

    def base_url(self, testnet: bool = False) -> str:
        return self.testnet_url if testnet else self.mainnet_url


class ReconConfig(BaseModel):
    """Complete reconciliation configuration."""

    model_config = ConfigDict(frozen=True)

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)


class ReconConfigManager:
    """Manages configuration for closed-PnL reconciliation.

    Loads configuration from a JSON file and provides a unified interface
    for accessing tolerances, retry policy and exchange settings.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config directory. Defaults to this module's dir.
        """
        if config_path is None:
            config_path = Path(__file__).parent

        self.config_path = config_path
        self.config_file = config_path / CONFIG_FILE_NAME

        self._load_config()

    @classmethod
    def from_config(cls, config: ReconConfig) -> "ReconConfigManager":
        """Build a manager around an in-memory configuration (no file I/O)."""
        manager = cls.__new__(cls)
        manager.config_path = None
        manager.config_file = None
        manager.config = config
        return manager

    def _load_config(self) -> None:
        """Load and validate configuration from the JSON file."""
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise FileNotFoundError(
                f"Reconciliation config not found at {self.config_file}"
            ) from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in reconciliation config: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("Reconciliation config must be a dictionary")

        raw: ReconConfigData = data  # type: ignore[assignment]
        try:
            self.config = ReconConfig.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid reconciliation config: {e}") from e

    @property
    def matching(self) -> MatchingConfig:
        return self.config.matching

    @property
    def retry_policy(self) -> RetryPolicy:
        return self.config.retry

    @property
    def exchange(self) -> ExchangeConfig:
        return self.config.exchange

    def get_processing_order(self) -> list[int]:
        """Get the order in which rules should be processed.

        Returns:
            List of rule numbers in processing order
        """
        return list(RULE_ORDER)

    def get_quantity_tolerance(self) -> Decimal:
        return self.config.matching.quantity_tolerance

    def get_perpetual_suffixes(self) -> list[str]:
        return list(self.config.matching.perpetual_suffixes)

    def get_closing_side_map(self) -> dict[TradeSide, TradeSide]:
        """Get the opening-side to closing-side mapping for the active exchange.

        Returns:
            dict mapping the trade's opening side to the side the exchange reports on close
        """
        return dict(self.config.matching.closing_side_map)

    def get_malformed_record_policy(self) -> MalformedRecordPolicy:
        return self.config.matching.malformed_record_policy

    def reload_config(self) -> None:
        """Reload configuration from file.

        Useful for development and testing when config files change.
        """
        if self.config_file is None:
            return
        self._load_config()
