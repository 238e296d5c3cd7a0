"""
Plain-text rebalance report.

Renders a RebalanceResult as per-account tables of purchase, current value
and target for each fund, preceded by the fund descriptions and, when both
retirement accounts are present, the combined retirement target.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from vapore.catalog import FundCatalog
from vapore.models import AccountKind, AccountPlan, AssetClass, RebalanceResult, TargetEntry


RULE = "-" * 58
DOUBLE_RULE = "=" * 58

# Accounts appear in this order in the report
REPORT_ORDER = (AccountKind.TRADITIONAL_IRA, AccountKind.ROTH_IRA, AccountKind.BROKERAGE)


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def _stock_bond_ratio(plan: AccountPlan, catalog: FundCatalog) -> str:
    """Current stock:bond percentages of an account's invested holdings."""
    totals = {AssetClass.STOCK: Decimal("0"), AssetClass.BOND: Decimal("0")}
    for symbol, holding in plan.holdings.items():
        if symbol in catalog:
            totals[catalog.asset_class(symbol)] += holding.market_value
    invested = totals[AssetClass.STOCK] + totals[AssetClass.BOND]
    if invested == 0:
        return "-"
    stock = totals[AssetClass.STOCK] / invested * 100
    return f"{stock:.1f}:{100 - stock:.1f}"


def format_account_plan(plan: AccountPlan, catalog: FundCatalog) -> str:
    """
    Table of purchase, current value and target for one account.

    Args:
        plan: Account plan from a rebalance result
        catalog: Fund catalog (row order and asset classes)

    Returns:
        Multi-line table
    """
    purchases = {o.symbol: o for o in plan.orders}
    lines = [
        f"{'Symbol':<8} {'Purchase':>14} {'Current':>16} {'Target':>16}",
        RULE,
    ]
    for fund in catalog.funds():
        order = purchases.get(fund.symbol)
        purchase = _money(order.dollar_amount) if order else _money(Decimal("0"))
        if order and order.approx_shares is not None:
            purchase = f"{purchase} (~{order.approx_shares:.3f} sh)"
        lines.append(
            f"{fund.symbol:<8} {purchase:>14} "
            f"{_money(plan.current_value(fund.symbol)):>16} "
            f"{_money(plan.target_for(fund.symbol)):>16}"
        )

    account = plan.account
    lines.extend([
        RULE,
        f"{'Settlement cash':<24} {_money(account.settlement_cash):>16}",
        f"{'Cash added':<24} {_money(account.cash_addition):>16}",
        f"{'Total':<24} {_money(account.total_value):>16}",
    ])
    if plan.unallocated_cash > 0:
        lines.append(f"{'Unallocated':<24} {_money(plan.unallocated_cash):>16}")
    lines.extend([
        f"{'Stock:Bond':<24} {_stock_bond_ratio(plan, catalog):>16} {str(account.split):>16}",
        DOUBLE_RULE,
    ])
    return "\n".join(lines)


def format_pool(pool: list[TargetEntry]) -> str:
    lines = [f"{'Symbol':<8} {'Target':>16}", RULE[:25]]
    lines.extend(f"{entry.symbol:<8} {_money(entry.target_value):>16}" for entry in pool)
    total = sum((entry.target_value for entry in pool), Decimal("0"))
    lines.extend([RULE[:25], f"{'Total':<8} {_money(total):>16}"])
    return "\n".join(lines)


def format_report(result: RebalanceResult, catalog: FundCatalog) -> str:
    """
    Full report text: descriptions, retirement target, one table per account
    and any warnings.
    """
    sections = [f"DESCRIPTIONS:\n{catalog.describe_all()}"]

    if result.retirement_pool_targets:
        sections.append(f"Retirement target:\n{format_pool(result.retirement_pool_targets)}")

    for kind in REPORT_ORDER:
        plan = result.plans.get(kind)
        if plan is not None:
            sections.append(
                f"{kind.label} ({plan.account.account_id}):\n{format_account_plan(plan, catalog)}"
            )

    if result.warnings:
        sections.append(
            "WARNINGS:\n" + "\n".join(f"  - {warning}" for warning in result.warnings)
        )

    return "\n\n".join(sections)


def report_filename(now: Optional[datetime] = None) -> str:
    """Timestamped report file name, e.g. ``2024-03-15_09-30_rebalance.txt``."""
    now = now or datetime.now()
    return f"{now.strftime('%Y-%m-%d_%H-%M')}_rebalance.txt"


def write_report(
    result: RebalanceResult,
    catalog: FundCatalog,
    output_dir: str | Path,
    now: Optional[datetime] = None,
) -> Path:
    """
    Write the report to a timestamped file in output_dir.

    Returns:
        Path to the written report
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / report_filename(now or result.generated_at)
    report_path.write_text(format_report(result, catalog) + "\n")
    return report_path
