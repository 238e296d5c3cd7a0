"""
Target allocation for a single account.

Each symbol's target is the account total times the split fraction of its
asset class times its weight within that class.
"""

from decimal import Decimal, ROUND_HALF_EVEN

from vapore.catalog import FundCatalog
from vapore.errors import InvalidSplitError
from vapore.models import CENT, Account, AccountKind, StockBondSplit, TargetEntry


def validate_split(stock, bond) -> StockBondSplit:
    """
    Validate a stock/bond split given as fractions.

    Args:
        stock: Stock fraction (Decimal, int, float or string)
        bond: Bond fraction

    Returns:
        StockBondSplit

    Raises:
        InvalidSplitError: If a value is not numeric, is negative, or the two
            fractions do not sum to exactly 1
    """
    try:
        stock_fraction = Decimal(str(stock))
        bond_fraction = Decimal(str(bond))
    except ArithmeticError:
        raise InvalidSplitError(f"Split must be numeric, got ({stock}, {bond})") from None
    return StockBondSplit(stock=stock_fraction, bond=bond_fraction)


def calculate_targets(
    account_kind: AccountKind,
    total_value: Decimal,
    split: StockBondSplit,
    catalog: FundCatalog,
) -> list[TargetEntry]:
    """
    Calculate the target dollar value of every catalog symbol for one account.

    Args:
        account_kind: Account the targets are for
        total_value: Account value to allocate
        split: Stock/bond split for the account
        catalog: Fund catalog

    Returns:
        One TargetEntry per catalog symbol, sorted by symbol. Values are
        rounded to the cent, so their sum is within one cent per symbol of
        total_value.
    """
    entries = []
    for fund in catalog.funds():
        raw = total_value * split.fraction(fund.asset_class) * fund.class_weight
        entries.append(
            TargetEntry(
                account_kind=account_kind,
                symbol=fund.symbol,
                target_value=raw.quantize(CENT, rounding=ROUND_HALF_EVEN),
            )
        )
    return entries


def calculate_account_targets(account: Account, catalog: FundCatalog) -> list[TargetEntry]:
    """Targets for an account using its own value and split."""
    return calculate_targets(account.kind, account.total_value, account.split, catalog)


def targets_by_symbol(entries: list[TargetEntry]) -> dict[str, Decimal]:
    """Map symbol -> target value."""
    return {e.symbol: e.target_value for e in entries}


def total_target(entries: list[TargetEntry]) -> Decimal:
    return sum((e.target_value for e in entries), Decimal("0"))


def baseline_mix(split: StockBondSplit, catalog: FundCatalog) -> dict[str, Decimal]:
    """
    Fraction of new money each symbol receives under the baseline target mix.

    The fractions sum to 1: split fraction of the asset class times class weight.
    """
    return {
        fund.symbol: split.fraction(fund.asset_class) * fund.class_weight
        for fund in catalog.funds()
    }
