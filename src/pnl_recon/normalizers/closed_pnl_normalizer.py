"""Normalizer for local trade symbols and raw closed-PnL payloads."""

import logging
from typing import Any, Iterable, List, Mapping, Tuple

from pydantic import ValidationError

from ..config import MalformedRecordPolicy, ReconConfigManager
from ..exceptions import MalformedCandidateError
from ..models import ClosedPositionRecord
from ..utils import safe_str

logger = logging.getLogger(__name__)


class ClosedPnlNormalizer:
    """Converts raw exchange data and local symbols into comparable form."""

    def __init__(self, config_manager: ReconConfigManager):
        """Initialize normalizer with configuration.

        Args:
            config_manager: Configuration manager with suffixes and malformed-record policy
        """
        self.config_manager = config_manager
        self._suffixes = config_manager.get_perpetual_suffixes()
        self._policy = config_manager.get_malformed_record_policy()

        logger.debug(
            f"Initialized closed-PnL normalizer (suffixes={self._suffixes}, policy={self._policy.value})"
        )

    def normalize_symbol(self, symbol: str) -> str:
        """Strip a perpetual-market suffix so the symbol matches exchange format.

        Args:
            symbol: Local symbol (e.g., "BTCUSDTPERP", "btcusdt")

        Returns:
            Exchange-native symbol (e.g., "BTCUSDT")
        """
        if not symbol:
            return ""

        cleaned = symbol.strip().upper()
        for suffix in self._suffixes:
            suffix_upper = suffix.upper()
            if cleaned.endswith(suffix_upper) and len(cleaned) > len(suffix_upper):
                normalized = cleaned[: -len(suffix_upper)]
                logger.debug(f"Normalized symbol: '{symbol}' -> '{normalized}'")
                return normalized

        return cleaned

    def normalize_records(
        self, raw_records: Iterable[Mapping[str, Any]]
    ) -> Tuple[List[ClosedPositionRecord], int]:
        """Parse raw closed-PnL entries into records, applying the malformed-record policy.

        Args:
            raw_records: Entries of ``result.list`` from the exchange response

        Returns:
            Tuple of (parsed records in upstream order, number of skipped records)

        Raises:
            MalformedCandidateError: If a record is malformed and the policy is FAIL
        """
        records: List[ClosedPositionRecord] = []
        skipped = 0

        for index, raw in enumerate(raw_records):
            try:
                if not isinstance(raw, Mapping):
                    raise TypeError(f"expected an object, got {type(raw).__name__}")
                payload = dict(raw)
                records.append(
                    ClosedPositionRecord.model_validate({**payload, "raw": payload})
                )
            except (ValidationError, TypeError) as e:
                order_id = safe_str(raw.get("orderId")) if isinstance(raw, Mapping) else None
                errors = e.errors(include_url=False) if isinstance(e, ValidationError) else []

                if self._policy == MalformedRecordPolicy.FAIL:
                    raise MalformedCandidateError(
                        "Malformed closed-PnL record",
                        order_id=order_id,
                        index=index,
                        errors=errors,
                    ) from e

                skipped += 1
                logger.warning(
                    f"Skipping malformed closed-PnL record #{index} (orderId={order_id}): {e}"
                )

        if skipped:
            logger.info(f"Parsed {len(records)} closed-PnL records, skipped {skipped}")
        return records, skipped
