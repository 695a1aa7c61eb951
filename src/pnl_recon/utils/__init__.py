"""Common utility functions."""

from .type_coercion import (
    from_epoch_ms,
    safe_decimal,
    safe_int,
    safe_str,
    to_epoch_ms,
)

__all__ = ["safe_int", "safe_decimal", "safe_str", "to_epoch_ms", "from_epoch_ms"]
