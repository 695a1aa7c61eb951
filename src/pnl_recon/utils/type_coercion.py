"""Type coercion utilities for exchange payload values."""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def safe_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """
    Safely convert value to integer.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Integer value or default

    Examples:
        >>> safe_int("1714560000000")
        1714560000000
        >>> safe_int("abc")
        None
        >>> safe_int("123.45")
        123
        >>> safe_int(None)
        None
    """
    if value is None or value == "":
        return default

    if isinstance(value, bool):
        return default

    if isinstance(value, int):
        return value

    try:
        if isinstance(value, float):
            return int(value)
        elif isinstance(value, str):
            # Try to handle strings that might be floats
            if "." in value:
                return int(float(value))
            return int(value)
        elif isinstance(value, Decimal):
            return int(value)
        else:
            return int(value)
    except (ValueError, TypeError, InvalidOperation, OverflowError):
        return default


def safe_decimal(
    value: Any,
    default: Optional[Decimal] = None
) -> Optional[Decimal]:
    """
    Safely convert value to Decimal.

    NaN and infinities are rejected so they never reach arithmetic.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Decimal value or default

    Examples:
        >>> safe_decimal("0.01")
        Decimal('0.01')
        >>> safe_decimal(0.01)
        Decimal('0.01')
        >>> safe_decimal("abc")
        None
        >>> safe_decimal(None)
        None
    """
    if value is None or value == "":
        return default

    if isinstance(value, bool):
        return default

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            # Convert to string first to avoid float precision issues
            result = Decimal(str(value))
        elif isinstance(value, (int, str)):
            result = Decimal(value.strip() if isinstance(value, str) else value)
        else:
            result = Decimal(str(value))
    except (ValueError, TypeError, InvalidOperation):
        return default

    if not result.is_finite():
        return default
    return result


def safe_str(
    value: Any,
    default: Optional[str] = None,
    preserve_none: bool = False
) -> Optional[str]:
    """
    Safely convert value to string.

    Args:
        value: Value to convert
        default: Default value if conversion fails
        preserve_none: If True, return None for None values instead of default

    Returns:
        String value or default
    """
    if value is None:
        return None if preserve_none else default

    if value == "":
        return default

    if isinstance(value, str):
        return value

    try:
        return str(value)
    except (ValueError, TypeError):
        return default


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds (naive means UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def from_epoch_ms(epoch_ms: int) -> datetime:
    """Convert integer epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
