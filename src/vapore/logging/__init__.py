"""
Decision logging module for the Vanguard portfolio rebalancer.

Provides append-only decision logging for audit and reproducibility.
"""

from vapore.logging.decision_log import (
    DecimalEncoder,
    DecisionLogger,
    get_logger,
)

__all__ = [
    "DecimalEncoder",
    "DecisionLogger",
    "get_logger",
]
