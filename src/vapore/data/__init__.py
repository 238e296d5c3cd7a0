"""
Data loading module for the Vanguard portfolio rebalancer.

Handles loading and saving of transactions, prices, orders and targets,
and importing Vanguard download files.
"""

from vapore.data.loaders import (
    load_prices,
    load_transactions,
    save_orders,
    save_targets,
)
from vapore.data.vanguard_import import (
    VanguardDownload,
    parse_vanguard_download,
)

__all__ = [
    "load_prices",
    "load_transactions",
    "save_orders",
    "save_targets",
    "VanguardDownload",
    "parse_vanguard_download",
]
