"""Closed-PnL reconciliation.

Links locally recorded trades to the closed-position records an exchange
reports after a position closes, and derives the realized-PnL update for
each trade.
"""

__version__ = "0.1.0"
