"""
Target allocation module for the Vanguard portfolio rebalancer.

Computes per-account targets and routes risk across the retirement accounts.
"""

from vapore.allocation.targets import (
    baseline_mix,
    calculate_account_targets,
    calculate_targets,
    targets_by_symbol,
    total_target,
    validate_split,
)
from vapore.allocation.risk_placement import (
    RoutedTargets,
    retirement_pool,
    route_retirement_targets,
)

__all__ = [
    "baseline_mix",
    "calculate_account_targets",
    "calculate_targets",
    "targets_by_symbol",
    "total_target",
    "validate_split",
    "RoutedTargets",
    "retirement_pool",
    "route_retirement_targets",
]
