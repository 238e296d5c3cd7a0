"""
Command-line interface for the Vanguard portfolio rebalancer.

Provides commands for:
- rebalance: Compute buy orders for new cash across the configured accounts
- funds: List the funds in the catalog with their descriptions
- init-config: Write a configuration file from command-line options
"""

import logging
import sys
import uuid
from decimal import Decimal
from pathlib import Path
from typing import Optional

import click

from vapore import __version__
from vapore.catalog import FundCatalog
from vapore.config import apply_overrides, load_fund_catalog, load_rebalance_config, write_config
from vapore.data import (
    load_prices,
    load_transactions,
    parse_vanguard_download,
    save_orders,
    save_targets,
)
from vapore.engine import run_rebalance
from vapore.errors import VaporeError
from vapore.logging import get_logger
from vapore.models import AccountKind, RebalanceConfig
from vapore.report import format_report, write_report


logger = logging.getLogger(__name__)


def _decimal(value: Optional[float]) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def account_options(func):
    """Account id, cash addition and split options shared by several commands."""
    options = [
        click.option("--brokerage-account", type=str, default=None, help="Brokerage account number"),
        click.option("--roth-account", type=str, default=None, help="Roth IRA account number"),
        click.option("--traditional-account", type=str, default=None, help="Traditional IRA account number"),
        click.option("--add-brokerage", type=float, default=None, help="Cash to add to the brokerage account"),
        click.option("--add-roth", type=float, default=None, help="Cash to add to the Roth IRA"),
        click.option("--add-traditional", type=float, default=None, help="Cash to add to the traditional IRA"),
        click.option("--stock-percent-brokerage", type=float, default=None, help="Brokerage stock percentage (default 60)"),
        click.option("--bond-percent-brokerage", type=float, default=None, help="Brokerage bond percentage (default 40)"),
        click.option("--stock-percent-roth", type=float, default=None, help="Roth IRA stock percentage (default 90)"),
        click.option("--bond-percent-roth", type=float, default=None, help="Roth IRA bond percentage (default 10)"),
        click.option("--stock-percent-traditional", type=float, default=None, help="Traditional IRA stock percentage (default 90)"),
        click.option("--bond-percent-traditional", type=float, default=None, help="Traditional IRA bond percentage (default 10)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(config_path: Optional[str], opts: dict) -> RebalanceConfig:
    """Load the YAML configuration (if any) and apply command-line overrides."""
    base = load_rebalance_config(config_path) if config_path else None
    return apply_overrides(
        base,
        account_ids={
            AccountKind.BROKERAGE: opts["brokerage_account"],
            AccountKind.ROTH_IRA: opts["roth_account"],
            AccountKind.TRADITIONAL_IRA: opts["traditional_account"],
        },
        cash_additions={
            AccountKind.BROKERAGE: _decimal(opts["add_brokerage"]),
            AccountKind.ROTH_IRA: _decimal(opts["add_roth"]),
            AccountKind.TRADITIONAL_IRA: _decimal(opts["add_traditional"]),
        },
        stock_percents={
            AccountKind.BROKERAGE: _decimal(opts["stock_percent_brokerage"]),
            AccountKind.ROTH_IRA: _decimal(opts["stock_percent_roth"]),
            AccountKind.TRADITIONAL_IRA: _decimal(opts["stock_percent_traditional"]),
        },
        bond_percents={
            AccountKind.BROKERAGE: _decimal(opts["bond_percent_brokerage"]),
            AccountKind.ROTH_IRA: _decimal(opts["bond_percent_roth"]),
            AccountKind.TRADITIONAL_IRA: _decimal(opts["bond_percent_traditional"]),
        },
    )


@click.group()
@click.version_option(version=__version__, prog_name="vapore")
def main():
    """
    Vanguard portfolio rebalancer.

    Computes buy orders that move a brokerage account, a Roth IRA and a
    traditional IRA toward their target stock/bond allocations using only
    new cash. Nothing is ever sold and no orders are submitted.
    """
    pass


@main.command()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    default=None,
    help="Path to rebalance configuration YAML file",
)
@click.option(
    "--transactions", "-t",
    type=click.Path(exists=True),
    default=None,
    help="Path to transaction history CSV file",
)
@click.option(
    "--vanguard", "-d",
    type=click.Path(exists=True),
    default=None,
    help="Path to a Vanguard download CSV file",
)
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Path to current prices CSV file",
)
@click.option(
    "--catalog",
    type=click.Path(exists=True),
    default=None,
    help="Path to a custom fund catalog YAML file",
)
@account_options
@click.option(
    "--settlement-cash/--no-settlement-cash",
    default=None,
    help="Invest settlement fund balances along with new cash",
)
@click.option(
    "--output", "-o",
    is_flag=True,
    help="Write the report and order/target CSVs to the output directory",
)
@click.option(
    "--output-dir",
    type=click.Path(),
    default=None,
    help="Output directory. Defaults to config output_dir.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def rebalance(
    config: Optional[str],
    transactions: Optional[str],
    vanguard: Optional[str],
    prices: Optional[str],
    catalog: Optional[str],
    settlement_cash: Optional[bool],
    output: bool,
    output_dir: Optional[str],
    verbose: bool,
    **account_opts,
):
    """
    Compute buy orders for new cash.

    Holdings come from either a transaction history CSV (--transactions) or
    a Vanguard download (--vanguard).
    """
    _configure_logging(verbose)

    if (transactions is None) == (vanguard is None):
        click.echo("Error: provide exactly one of --transactions or --vanguard", err=True)
        sys.exit(1)

    run_id = str(uuid.uuid4())

    try:
        fund_catalog = load_fund_catalog(catalog) if catalog else FundCatalog.default()
        rebalance_config = _build_config(config, account_opts)
        if settlement_cash is not None:
            rebalance_config.deploy_settlement_cash = settlement_cash
        logger.debug(
            "Run %s: accounts %s", run_id,
            ", ".join(f"{k.label}={s.account_id}" for k, s in rebalance_config.accounts.items()),
        )

        supplied_prices = {}
        if vanguard:
            download = parse_vanguard_download(vanguard)
            account_ids = [s.account_id for s in rebalance_config.accounts.values()]
            download.require_accounts(account_ids)
            history = download.positions
            # Quotes for funds outside the catalog are of no use
            supplied_prices = {
                s: p for s, p in download.prices.items()
                if s in fund_catalog or fund_catalog.is_settlement(s)
            }
        else:
            history = load_transactions(transactions)

        if prices:
            supplied_prices.update(load_prices(prices))

        out_dir = Path(output_dir or rebalance_config.output_dir)
        decision_logger = None
        if output:
            decision_logger = get_logger(out_dir / "decision_log.jsonl")

        result = run_rebalance(
            history,
            rebalance_config,
            catalog=fund_catalog,
            prices=supplied_prices,
            decision_logger=decision_logger,
            run_id=run_id,
            config_source=config,
        )
    except VaporeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(format_report(result, fund_catalog))

    if output:
        timestamp = result.generated_at.strftime("%Y%m%d_%H%M%S")
        report_path = write_report(result, fund_catalog, out_dir)
        orders_path = save_orders(result, out_dir / f"orders_{timestamp}.csv")
        targets_path = save_targets(result, out_dir / f"targets_{timestamp}.csv")
        click.echo(f"\nReport saved to: {report_path}")
        click.echo(f"Orders saved to: {orders_path}")
        click.echo(f"Targets saved to: {targets_path}")

    if result.warnings:
        click.echo(f"\n{len(result.warnings)} warning(s): see WARNINGS above", err=True)


@main.command()
@click.option(
    "--catalog",
    type=click.Path(exists=True),
    default=None,
    help="Path to a custom fund catalog YAML file",
)
def funds(catalog: Optional[str]):
    """List the funds in the catalog."""
    try:
        fund_catalog = load_fund_catalog(catalog) if catalog else FundCatalog.default()
    except VaporeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("DESCRIPTIONS:")
    click.echo(fund_catalog.describe_all())
    click.echo("")
    click.echo(f"{'Symbol':<8} {'Class':<6} {'Weight':>8} {'Risk':>5}")
    click.echo("-" * 30)
    for fund in fund_catalog.by_risk():
        click.echo(
            f"{fund.symbol:<8} {fund.asset_class.value.lower():<6} "
            f"{fund.class_weight * 100:>7.1f}% {fund.risk_rank:>5}"
        )
    if fund_catalog.settlement_symbols:
        click.echo(f"\nSettlement: {', '.join(sorted(fund_catalog.settlement_symbols))}")


@main.command("init-config")
@click.argument("output_path", type=click.Path())
@account_options
@click.option(
    "--output-dir",
    type=click.Path(),
    default="output",
    help="Output directory recorded in the configuration",
)
def init_config(output_path: str, output_dir: str, **account_opts):
    """Write a configuration file from account options."""
    try:
        rebalance_config = _build_config(None, account_opts)
        if not rebalance_config.accounts:
            click.echo("Error: give at least one account number", err=True)
            sys.exit(1)
        rebalance_config.output_dir = output_dir
        write_config(rebalance_config, output_path)
    except VaporeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Configuration written to: {output_path}")
    for kind, settings in rebalance_config.accounts.items():
        click.echo(
            f"  {kind.label}: {settings.account_id} "
            f"(add ${settings.cash_addition:,.2f}, split {settings.split})"
        )


if __name__ == "__main__":
    main()
