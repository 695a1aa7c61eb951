"""HTTP API for closed-PnL reconciliation."""
