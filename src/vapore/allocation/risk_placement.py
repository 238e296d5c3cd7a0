"""
Risk placement across the two retirement accounts.

When both a Roth and a traditional IRA are present, their targets are pooled
and the riskiest funds are concentrated in the Roth, where growth is never
taxed on withdrawal. The traditional IRA holds the rest of the pool. The
pool's total per symbol is unchanged, so the portfolio-wide targets are the
same as if each account were allocated on its own. The brokerage account is
never routed.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from vapore.allocation.targets import calculate_account_targets, targets_by_symbol
from vapore.catalog import FundCatalog
from vapore.models import Account, AccountKind, TargetEntry


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutedTargets:
    """
    Result of routing the retirement pool.

    Attributes:
        roth: Targets for the Roth IRA
        traditional: Targets for the traditional IRA
        pool: Combined per-symbol targets before routing
    """
    roth: list[TargetEntry]
    traditional: list[TargetEntry]
    pool: list[TargetEntry]


def retirement_pool(
    roth: Account,
    traditional: Account,
    catalog: FundCatalog,
) -> dict[str, Decimal]:
    """
    Combined per-symbol targets of both retirement accounts.

    Each account is allocated with its own split first, so the pool honours
    both splits weighted by account value.
    """
    roth_targets = targets_by_symbol(calculate_account_targets(roth, catalog))
    traditional_targets = targets_by_symbol(calculate_account_targets(traditional, catalog))
    return {
        symbol: roth_targets[symbol] + traditional_targets[symbol]
        for symbol in sorted(catalog.all_symbols())
    }


def route_retirement_targets(
    roth: Account,
    traditional: Account,
    catalog: FundCatalog,
) -> RoutedTargets:
    """
    Concentrate the riskiest funds of the retirement pool in the Roth IRA.

    Funds are visited riskiest first (stocks by risk rank, then bonds by
    risk rank, ties by symbol). The Roth takes as much of each fund's pooled
    target as it still has room for until its total value is used up; the
    traditional IRA receives whatever remains of each fund.

    Args:
        roth: Roth IRA account
        traditional: Traditional IRA account
        catalog: Fund catalog providing risk ranks

    Returns:
        RoutedTargets with per-account entries sorted by symbol
    """
    pool = retirement_pool(roth, traditional, catalog)

    roth_room = roth.total_value
    roth_values = {symbol: Decimal("0") for symbol in pool}
    for fund in catalog.by_risk():
        if roth_room <= 0:
            break
        value = min(pool[fund.symbol], roth_room)
        roth_values[fund.symbol] = value
        roth_room -= value

    if roth_room > 0:
        logger.debug("Roth room left after routing (rounding): $%s", roth_room)

    routed_to_roth = [s for s, v in roth_values.items() if v > 0]
    logger.info(
        "Routed retirement pool: Roth holds %s, traditional holds the remainder",
        ", ".join(sorted(routed_to_roth, key=lambda s: -catalog.risk_rank(s))) or "nothing",
    )

    symbols = sorted(pool)
    return RoutedTargets(
        roth=[
            TargetEntry(AccountKind.ROTH_IRA, symbol, roth_values[symbol])
            for symbol in symbols
        ],
        traditional=[
            TargetEntry(AccountKind.TRADITIONAL_IRA, symbol, pool[symbol] - roth_values[symbol])
            for symbol in symbols
        ],
        pool=[
            TargetEntry(None, symbol, pool[symbol])
            for symbol in symbols
        ],
    )
