"""Loader for saved closed-PnL API responses."""

import json
from pathlib import Path
from typing import Any, List
import logging

from ..exchange import ClosedPnlQuery
from ..utils import safe_int

logger = logging.getLogger(__name__)


class ClosedPnlJSONLoader:
    """Reads closed-PnL entries saved from the exchange.

    Accepts either the full response envelope (``{"retCode": 0, "result":
    {"list": [...]}}``) or a bare list of entries.
    """

    def load_raw_records(self, json_path: Path) -> List[dict[str, Any]]:
        """Load raw closed-PnL entries from a JSON file.

        Args:
            json_path: Path to the saved response

        Returns:
            Raw entries, unparsed

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the JSON is invalid or has an unexpected shape
        """
        logger.info(f"Loading closed-PnL JSON from: {json_path}")
        try:
            with open(json_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.error(f"Closed-PnL JSON file not found: {json_path}")
            raise
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in closed-PnL file: {e}") from e

        return self.extract_records(data)

    def extract_records(self, data: Any) -> List[dict[str, Any]]:
        """Pull the entry list out of a response envelope or bare list."""
        if isinstance(data, list):
            records = data
        elif isinstance(data, dict):
            if data.get("retCode", 0) != 0:
                raise ValueError(
                    f"Saved response carries an error: retCode={data.get('retCode')} "
                    f"retMsg={data.get('retMsg')}"
                )
            result = data.get("result")
            records = (result.get("list") if isinstance(result, dict) else None) or []
        else:
            raise ValueError(f"Unexpected closed-PnL JSON root: {type(data).__name__}")

        logger.info(f"Loaded {len(records)} raw closed-PnL records")
        return list(records)


class SavedClosedPnlSource:
    """Serves saved closed-PnL entries as if they came from the exchange.

    Applies the same symbol and time-window filter the endpoint applies, so
    an offline batch runs through the same fetch and match pipeline as a
    live one. Entries whose createdTime can't be read are passed through for
    the normalizer to judge.
    """

    def __init__(self, raw_records: List[dict[str, Any]]):
        self.raw_records = list(raw_records)

    async def fetch_closed_pnl(self, query: ClosedPnlQuery) -> List[dict[str, Any]]:
        selected = []
        for record in self.raw_records:
            if not isinstance(record, dict):
                selected.append(record)
                continue
            if str(record.get("symbol", "")).strip().upper() != query.symbol:
                continue
            created = safe_int(record.get("createdTime"))
            if created is not None and not (
                query.start_time_ms <= created <= query.end_time_ms
            ):
                continue
            selected.append(record)
        return selected[: query.limit]
