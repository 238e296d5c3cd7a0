"""
Buy-order generation for the Vanguard portfolio rebalancer.

Turns an account's targets, current holdings and available cash into buy
orders. Nothing is ever sold: over-target holdings are left alone and only
new cash is deployed. The work is split into separate steps:

1. compute_deficits: shortfall of each symbol, clamped at zero
2. distribute_cash: proportional split of the cash across deficits, with
   any surplus spread over the baseline target mix
3. round_allocations: round each amount down to a purchasable unit and
   carry the remainder to the next symbol in deficit order
4. build_orders: create orders and collect missing-price warnings
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN, ROUND_FLOOR
from typing import Mapping, Optional

from vapore.allocation.targets import baseline_mix, targets_by_symbol
from vapore.catalog import FundCatalog
from vapore.errors import InsufficientDataError
from vapore.models import (
    CENT,
    AccountKind,
    Holding,
    Order,
    StockBondSplit,
    TargetEntry,
)


logger = logging.getLogger(__name__)


@dataclass
class OrderPlan:
    """
    Orders for one account.

    Attributes:
        orders: Buy orders in deficit order
        warnings: Missing-price conditions for symbols that received cash
        unallocated: Rounding remainder left undeployed
    """
    orders: list[Order] = field(default_factory=list)
    warnings: list[InsufficientDataError] = field(default_factory=list)
    unallocated: Decimal = Decimal("0")


def compute_deficits(
    targets: list[TargetEntry],
    holdings: Mapping[str, Holding],
) -> dict[str, Decimal]:
    """
    Shortfall of each target symbol versus its current holding.

    Over-target holdings have a deficit of zero; they are never sold.

    Args:
        targets: Target entries for the account
        holdings: Current holdings keyed by symbol

    Returns:
        Dictionary mapping symbol -> non-negative deficit
    """
    deficits = {}
    for symbol, target in targets_by_symbol(targets).items():
        holding = holdings.get(symbol)
        current = holding.market_value if holding else Decimal("0")
        deficits[symbol] = max(Decimal("0"), target - current)
    return deficits


def deficit_order(
    deficits: Mapping[str, Decimal],
    mix: Optional[Mapping[str, Decimal]] = None,
) -> list[str]:
    """
    Order in which symbols are funded and rounding remainders carried.

    Largest deficit first, then largest baseline mix, then symbol.
    """
    mix = mix or {}
    return sorted(
        deficits,
        key=lambda s: (-deficits[s], -mix.get(s, Decimal("0")), s),
    )


def distribute_cash(
    available_cash: Decimal,
    deficits: Mapping[str, Decimal],
    mix: Mapping[str, Decimal],
) -> dict[str, Decimal]:
    """
    Split available cash across symbols before any rounding.

    If the cash does not exceed the total deficit, each symbol with a deficit
    receives cash in proportion to its share of the total deficit. Otherwise
    every deficit is filled and the surplus is spread over all symbols
    according to the baseline target mix.

    Args:
        available_cash: Cash to deploy
        deficits: Non-negative deficit per symbol
        mix: Baseline fraction per symbol (sums to 1)

    Returns:
        Dictionary mapping symbol -> unrounded dollars; the values sum to
        available_cash exactly
    """
    if available_cash <= 0:
        return {}

    total_deficit = sum(deficits.values(), Decimal("0"))
    order = deficit_order(deficits, mix)

    if available_cash <= total_deficit:
        funded = [s for s in order if deficits[s] > 0]
        weights = {s: deficits[s] / total_deficit for s in funded}
        base = {s: Decimal("0") for s in funded}
        to_spread = available_cash
    else:
        funded = [s for s in order if deficits[s] > 0 or mix.get(s, Decimal("0")) > 0]
        weights = {s: mix.get(s, Decimal("0")) for s in funded}
        base = {s: deficits[s] for s in funded}
        to_spread = available_cash - total_deficit
        logger.debug(
            "Cash $%s exceeds total deficit $%s; spreading surplus $%s over target mix",
            available_cash, total_deficit, to_spread,
        )

    allocations = {}
    spread_so_far = Decimal("0")
    last = len(funded) - 1
    for i, symbol in enumerate(funded):
        if i == last:
            share = to_spread - spread_so_far
        else:
            share = to_spread * weights[symbol]
            spread_so_far += share
        allocations[symbol] = base[symbol] + share
    return allocations


def round_allocations(
    allocations: Mapping[str, Decimal],
    order: list[str],
    catalog: FundCatalog,
    prices: Mapping[str, Decimal],
) -> tuple[dict[str, Decimal], Decimal]:
    """
    Round each allocation down to a purchasable amount.

    Whole-share funds with a known price are rounded down to a whole number
    of shares; everything else is rounded down to the cent. The remainder is
    carried to the next symbol in order, so the rounded total never exceeds
    the unrounded total.

    Args:
        allocations: Unrounded dollars per symbol
        order: Symbols in deficit order
        catalog: Fund catalog (whole-share flags)
        prices: Current prices

    Returns:
        Tuple of (rounded dollars per symbol, final undeployed remainder)
    """
    rounded: dict[str, Decimal] = {}
    carry = Decimal("0")
    for symbol in order:
        if symbol not in allocations:
            continue
        amount = allocations[symbol] + carry
        price = prices.get(symbol)
        if catalog.fund(symbol).whole_shares and price:
            shares = (amount / price).to_integral_value(rounding=ROUND_FLOOR)
            dollars = shares * price
        else:
            dollars = amount.quantize(CENT, rounding=ROUND_DOWN)
        carry = amount - dollars
        rounded[symbol] = dollars
    return rounded, carry


def build_orders(
    account_kind: AccountKind,
    rounded: Mapping[str, Decimal],
    order: list[str],
    prices: Mapping[str, Decimal],
) -> tuple[list[Order], list[InsufficientDataError]]:
    """
    Create buy orders for every symbol with a positive rounded amount.

    A symbol without a price still gets its dollar order, with no share
    estimate, and yields one InsufficientDataError warning.
    """
    orders = []
    warnings = []
    for symbol in order:
        dollars = rounded.get(symbol, Decimal("0"))
        if dollars <= 0:
            continue
        price = prices.get(symbol)
        if price is None:
            warning = InsufficientDataError(account_kind.label, symbol)
            logger.warning(str(warning))
            warnings.append(warning)
        orders.append(Order.create(account_kind, symbol, dollars, price))
    return orders, warnings


def generate_orders(
    account_kind: AccountKind,
    targets: list[TargetEntry],
    holdings: Mapping[str, Holding],
    available_cash: Decimal,
    split: StockBondSplit,
    catalog: FundCatalog,
    prices: Mapping[str, Decimal],
) -> OrderPlan:
    """
    Generate buy orders that move an account toward its targets.

    Args:
        account_kind: Account being rebalanced
        targets: Target entries for the account
        holdings: Current holdings keyed by symbol
        available_cash: Cash to deploy (already validated non-negative)
        split: Account split, used for the surplus mix
        catalog: Fund catalog
        prices: Current prices by symbol

    Returns:
        OrderPlan with orders, warnings and undeployed remainder
    """
    if available_cash <= 0:
        return OrderPlan()

    deficits = compute_deficits(targets, holdings)
    mix = baseline_mix(split, catalog)
    order = deficit_order(deficits, mix)

    allocations = distribute_cash(available_cash, deficits, mix)
    rounded, remainder = round_allocations(allocations, order, catalog, prices)
    orders, warnings = build_orders(account_kind, rounded, order, prices)

    logger.info(
        "%s: %d orders totalling $%s of $%s available",
        account_kind.label,
        len(orders),
        sum((o.dollar_amount for o in orders), Decimal("0")),
        available_cash,
    )
    return OrderPlan(orders=orders, warnings=warnings, unallocated=remainder)
