"""Close-update and risk metric calculations for a reconciled trade."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..models import (
    ClosedPositionRecord,
    LocalTrade,
    PnlMatchResult,
    TradeCloseUpdate,
    TradeMetrics,
    TradeSide,
    WinLoss,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def format_trade_time(seconds: int) -> str:
    """Format a duration as ``HH:MM``, or ``DD:HH:MM`` once it exceeds a day.

    Examples:
        >>> format_trade_time(5400)
        '01:30'
        >>> format_trade_time(93600)
        '01:02:00'
    """
    seconds = max(0, int(seconds))
    days, remainder = divmod(seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    if days > 0:
        return f"{days:02d}:{hours:02d}:{minutes:02d}"
    return f"{hours:02d}:{minutes:02d}"


def format_duration_hms(seconds: int) -> str:
    """Format a duration as ``HH:MM:SS`` (hours are not wrapped at 24)."""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def calculate_r_multiple(pnl: Decimal, max_risk: Optional[Decimal]) -> Optional[Decimal]:
    """Realized PnL as a multiple of the amount risked; None without a risk amount."""
    if not max_risk:
        return None
    return pnl / max_risk


def classify_win_loss(pnl: Decimal) -> WinLoss:
    if pnl > 0:
        return WinLoss.WIN
    if pnl < 0:
        return WinLoss.LOSS
    return WinLoss.BREAKEVEN


def estimate_close_fee(cum_exit_value: Decimal, fee_rate: Decimal) -> Decimal:
    """Approximate exit fee from the cumulative exit value."""
    return cum_exit_value * fee_rate


def calculate_trade_metrics(
    trade: LocalTrade,
    record: ClosedPositionRecord,
    close_time: datetime,
    close_fee: Decimal,
) -> Optional[TradeMetrics]:
    """Compute risk and execution metrics for a matched trade.

    Needs the trade's planned entry and stop loss; returns None without them.

    Args:
        trade: Local trade with risk context
        record: Matched closed-PnL record
        close_time: When the trade was closed
        close_fee: Estimated fee on the exit

    Returns:
        TradeMetrics, or None if the trade lacks a planned entry or stop loss
    """
    if trade.entry_price is None or trade.stop_loss is None:
        logger.debug(f"Skipping trade metrics for {trade.display_id}: no entry/stop loss")
        return None

    planned_entry = trade.entry_price
    stop_loss = trade.stop_loss
    take_profit = trade.take_profit or ZERO
    max_risk = trade.max_risk or ZERO
    actual_entry = record.avg_entry_price or planned_entry
    finished = record.closed_pnl

    if trade.side == TradeSide.BUY:
        risk_per_unit = planned_entry - stop_loss
        reward_per_unit = take_profit - planned_entry
    else:
        risk_per_unit = stop_loss - planned_entry
        reward_per_unit = planned_entry - take_profit

    position_units = max_risk / risk_per_unit if risk_per_unit != 0 else ZERO
    target_rr = reward_per_unit / risk_per_unit if risk_per_unit != 0 else ZERO
    finished_rr = finished / max_risk if max_risk != 0 else ZERO

    # How far a loss overshot the planned risk
    deviation = ZERO
    if finished < 0 and max_risk > 0:
        deviation = (abs(finished) - max_risk) / max_risk * 100

    total_seconds = int((close_time - trade.entry_timestamp).total_seconds())

    return TradeMetrics(
        symbol=trade.symbol,
        side=trade.side.value,
        wanted_entry=planned_entry,
        stop_loss=stop_loss,
        take_profit=take_profit,
        max_risk=max_risk,
        risk_per_unit=risk_per_unit,
        position_units=position_units,
        position_notional=planned_entry * position_units,
        target_rr=target_rr,
        finished_rr=finished_rr,
        deviation_percent_from_max_risk=deviation,
        slippage=abs(actual_entry - planned_entry),
        total_trade_time_seconds=max(0, total_seconds),
        formatted_trade_time=format_trade_time(total_seconds),
        total_fees=(trade.open_fee or ZERO) + close_fee,
    )


def build_close_update(
    trade: LocalTrade,
    match_result: PnlMatchResult,
    close_time: datetime,
    fee_rate: Decimal,
) -> TradeCloseUpdate:
    """Build the storage update for a trade closed with a matched record.

    Args:
        trade: Local trade being closed
        match_result: Result holding the selected record
        close_time: Close timestamp to record
        fee_rate: Exit fee rate applied to the cumulative exit value

    Returns:
        TradeCloseUpdate with PnL, prices, R-multiple and duration
    """
    record = match_result.match
    if record is None:
        raise ValueError("build_close_update requires a matched record")

    pnl = record.closed_pnl
    close_fee = estimate_close_fee(record.cum_exit_value, fee_rate)
    total_seconds = max(0, int((close_time - trade.entry_timestamp).total_seconds()))

    return TradeCloseUpdate(
        close_time=close_time,
        trade_close_exe_time=close_time,
        updated_at=close_time,
        close_price=record.avg_exit_price,
        avg_entry=record.avg_entry_price,
        pnl=pnl,
        finish_r=calculate_r_multiple(pnl, trade.max_risk),
        finish_usd=pnl,
        win_loss=classify_win_loss(pnl),
        close_fee=close_fee,
        trade_fee=close_fee,
        total_trade_time=format_duration_hms(total_seconds),
        total_trade_time_seconds=total_seconds,
        pnl_match_type=match_result.match_type,
        details={**record.raw, "pnl_match_type": match_result.match_type.value},
    )


def build_unmatched_close_update(close_time: datetime) -> TradeCloseUpdate:
    """Build the update for a trade closed without realized-PnL data."""
    return TradeCloseUpdate(
        close_time=close_time,
        trade_close_exe_time=close_time,
        updated_at=close_time,
    )
