"""DataFrame output utilities for closed-PnL reconciliation results."""

from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime
import pandas as pd
import json
from pathlib import Path

from ..models import ReconciliationOutcome

OUTPUT_COLUMNS = [
    "tradeId",
    "status",
    "matchType",
    "ruleOrder",
    "orderId",
    "symbol",
    "closeSide",
    "quantity",
    "closedPnl",
    "avgEntryPrice",
    "avgExitPrice",
    "finishR",
    "winLoss",
    "closeFee",
    "totalTradeTime",
    "timeDistanceMs",
    "candidateCount",
]


def _to_number(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def outcome_to_record(outcome: ReconciliationOutcome) -> Dict[str, Any]:
    """Flatten one outcome into a JSON-friendly row."""
    result = outcome.match_result
    record = result.match if result else None
    update = outcome.update

    return {
        "tradeId": outcome.trade_id,
        "status": outcome.status.value,
        "matchType": result.match_type.value if result else None,
        "ruleOrder": result.rule_order if result else None,
        "orderId": record.order_id if record else None,
        "symbol": record.symbol if record else None,
        "closeSide": record.side if record else None,
        "quantity": _to_number(record.quantity) if record else None,
        "closedPnl": _to_number(record.closed_pnl) if record else None,
        "avgEntryPrice": _to_number(record.avg_entry_price) if record else None,
        "avgExitPrice": _to_number(record.avg_exit_price) if record else None,
        "finishR": _to_number(update.finish_r) if update else None,
        "winLoss": update.win_loss.value if update and update.win_loss else None,
        "closeFee": _to_number(update.close_fee) if update else None,
        "totalTradeTime": update.total_trade_time if update else None,
        "timeDistanceMs": result.time_distance_ms if result else None,
        "candidateCount": outcome.candidate_count,
    }


def create_outcome_dataframe(outcomes: Sequence[ReconciliationOutcome]) -> pd.DataFrame:
    """
    Create a standardized DataFrame from reconciliation outcomes.

    Args:
        outcomes: Outcomes in trade order

    Returns:
        DataFrame with one row per trade and the OUTPUT_COLUMNS columns
    """
    records: List[Dict[str, Any]] = [outcome_to_record(o) for o in outcomes]

    if not records:
        return pd.DataFrame(columns=OUTPUT_COLUMNS)

    return pd.DataFrame(records)[OUTPUT_COLUMNS]


def save_dataframe_to_json(
    df: pd.DataFrame, output_path: Optional[Path] = None, filename: Optional[str] = None
) -> Path:
    """
    Save DataFrame to JSON file in json_output directory.

    Args:
        df: DataFrame to save
        output_path: Optional output directory path
        filename: Optional filename (defaults to timestamp)

    Returns:
        Path to saved JSON file
    """
    if output_path is None:
        output_path = Path("json_output")

    output_path.mkdir(parents=True, exist_ok=True)

    if filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"pnl_recon_output_{timestamp}.json"

    file_path = output_path / filename

    # NaN from empty numeric cells becomes null
    json_data = json.loads(df.to_json(orient="records"))

    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(json_data, f, indent=2, default=str, ensure_ascii=False)

    return file_path
