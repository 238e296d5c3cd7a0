"""
Portfolio holdings module for the Vanguard portfolio rebalancer.

Builds the per-account holdings snapshot from transaction history.
"""

from vapore.portfolio.holdings import (
    HoldingsSnapshot,
    aggregate_transactions,
    build_holdings_snapshot,
    resolve_prices,
)

__all__ = [
    "HoldingsSnapshot",
    "aggregate_transactions",
    "build_holdings_snapshot",
    "resolve_prices",
]
