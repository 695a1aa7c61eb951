"""CSV loader for locally recorded trades."""

import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError

from ..models import LocalTrade
from ..utils import safe_decimal, safe_str

logger = logging.getLogger(__name__)

# Accepted spellings for each LocalTrade field, after lower-casing headers
COLUMN_ALIASES: Dict[str, List[str]] = {
    "trade_id": ["trade_id", "id"],
    "symbol": ["symbol"],
    "side": ["side"],
    "quantity": ["quantity", "qty"],
    "order_id": ["order_id", "orderid"],
    "entry_timestamp": ["entry_timestamp", "entry_date", "created_at"],
    "status": ["status"],
    "entry_price": ["entry_price", "price", "planned_entry"],
    "stop_loss": ["stop_loss"],
    "take_profit": ["take_profit"],
    "max_risk": ["max_risk", "risk_per_trade"],
    "open_fee": ["open_fee", "fees"],
}

DECIMAL_FIELDS = {"quantity", "entry_price", "stop_loss", "take_profit", "max_risk", "open_fee"}


class TradeCSVLoader:
    """Loads local trades (e.g. a manual-trade journal export) from CSV."""

    def load_trades(self, csv_path: Path) -> List[LocalTrade]:
        """Load trades from a CSV file.

        Rows that fail validation, including numeric cells that cannot be
        parsed, are logged and skipped.

        Args:
            csv_path: Path to trades CSV file

        Returns:
            List of LocalTrade objects in file order

        Raises:
            FileNotFoundError: If CSV file doesn't exist
            ValueError: If CSV has invalid format
        """
        try:
            logger.info(f"Loading trades CSV from: {csv_path}")

            # Load CSV with proper encoding
            df = pd.read_csv(csv_path, encoding="utf-8-sig", dtype=str)

            # Normalize column names to lowercase snake case
            df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")

            logger.info(f"Successfully loaded {len(df)} rows from trades CSV")

            return self.from_dataframe(df)

        except FileNotFoundError:
            logger.error(f"Trades CSV file not found: {csv_path}")
            raise
        except Exception as e:
            logger.error(f"Failed to load trades: {e}")
            raise ValueError(f"Invalid trades CSV format: {e}") from e

    def from_dataframe(self, df: pd.DataFrame) -> List[LocalTrade]:
        """Create trades from an already-loaded DataFrame."""
        missing = [
            field
            for field in ("symbol", "side", "entry_timestamp")
            if self._resolve_column(df, field) is None
        ]
        if missing:
            raise ValueError(f"Trades data is missing required columns: {missing}")

        trades = []
        df = df.reset_index(drop=True)
        for i, row in df.iterrows():
            try:
                trades.append(self._create_trade(df, row))
            except (ValidationError, ValueError) as e:
                logger.error(f"Failed to create trade from row {i}: {e}")
                continue

        logger.info(f"Successfully created {len(trades)} trades")
        return trades

    def _resolve_column(self, df: pd.DataFrame, field: str) -> Optional[str]:
        for alias in COLUMN_ALIASES[field]:
            if alias in df.columns:
                return alias
        return None

    def _create_trade(self, df: pd.DataFrame, row: pd.Series) -> LocalTrade:
        values: Dict[str, Any] = {}
        for field in COLUMN_ALIASES:
            column = self._resolve_column(df, field)
            if column is None:
                continue
            raw = row.get(column)
            if pd.isna(raw):
                continue
            if field not in DECIMAL_FIELDS:
                values[field] = safe_str(raw)
                continue

            number = safe_decimal(raw)
            if number is None and str(raw).strip():
                # Blank cells are missing values; anything else must parse
                raise ValueError(f"Unparseable {field} value: {raw!r}")
            values[field] = number

        return LocalTrade.model_validate(values)
