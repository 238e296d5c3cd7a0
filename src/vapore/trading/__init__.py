"""
Order generation module for the Vanguard portfolio rebalancer.

Generates buy-only orders that deploy new cash toward account targets.
All orders are instructions only; nothing is submitted to a broker.
"""

from vapore.trading.orders import (
    OrderPlan,
    build_orders,
    compute_deficits,
    deficit_order,
    distribute_cash,
    generate_orders,
    round_allocations,
)

__all__ = [
    "OrderPlan",
    "build_orders",
    "compute_deficits",
    "deficit_order",
    "distribute_cash",
    "generate_orders",
    "round_allocations",
]
