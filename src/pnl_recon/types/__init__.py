"""Typed JSON structures."""

from .json_types import (
    ClosedPnlResponse,
    ClosedPnlResult,
    ClosedPnlWireRecord,
    ReconConfigData,
)

__all__ = [
    "ClosedPnlResponse",
    "ClosedPnlResult",
    "ClosedPnlWireRecord",
    "ReconConfigData",
]
