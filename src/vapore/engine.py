"""
Rebalance engine for the Vanguard portfolio rebalancer.

Runs the whole pipeline for one portfolio:

    transactions -> holdings snapshot -> account valuation -> targets
    -> retirement risk placement -> buy orders

The engine is a pure function of its inputs apart from logging. Fatal errors
propagate before any result is produced; missing prices are collected as
warnings on the result.
"""

import logging
import uuid
from decimal import Decimal
from typing import Mapping, Optional

from vapore.allocation.risk_placement import route_retirement_targets
from vapore.allocation.targets import calculate_account_targets
from vapore.catalog import FundCatalog
from vapore.errors import ConfigurationError, NegativeCashError
from vapore.logging.decision_log import DecisionLogger
from vapore.models import (
    Account,
    AccountKind,
    AccountPlan,
    RebalanceConfig,
    RebalanceResult,
    TargetEntry,
    Transaction,
)
from vapore.portfolio.holdings import HoldingsSnapshot, build_holdings_snapshot
from vapore.trading.orders import generate_orders


logger = logging.getLogger(__name__)


def validate_config(config: RebalanceConfig) -> None:
    """
    Validate run inputs before any computation.

    Raises:
        ConfigurationError: If no accounts are configured or ids collide
        NegativeCashError: If any cash addition is negative
    """
    if not config.accounts:
        raise ConfigurationError("At least one account must be configured")

    seen_ids: dict[str, AccountKind] = {}
    for kind, settings in config.accounts.items():
        if settings.kind is not kind:
            raise ConfigurationError(
                f"Settings for {kind.label} are labelled {settings.kind.label}"
            )
        if not settings.account_id:
            raise ConfigurationError(f"{kind.label} account id cannot be empty")
        if settings.account_id in seen_ids:
            raise ConfigurationError(
                f"Account id {settings.account_id} is used for both "
                f"{seen_ids[settings.account_id].label} and {kind.label}"
            )
        seen_ids[settings.account_id] = kind
        if settings.cash_addition < 0:
            raise NegativeCashError(kind.label, settings.cash_addition)


def value_accounts(
    snapshot: HoldingsSnapshot,
    config: RebalanceConfig,
    catalog: FundCatalog,
) -> dict[AccountKind, Account]:
    """
    Value every configured account.

    Total value is the market value of the account's holdings (settlement
    funds included) plus the cash being added.
    """
    accounts = {}
    for kind in AccountKind:
        settings = config.settings_for(kind)
        if settings is None:
            continue
        if settings.account_id not in snapshot.account_ids():
            logger.info("%s account %s has no holdings", kind.label, settings.account_id)
        accounts[kind] = Account(
            kind=kind,
            account_id=settings.account_id,
            total_value=snapshot.market_value(settings.account_id) + settings.cash_addition,
            split=settings.split,
            cash_addition=settings.cash_addition,
            settlement_cash=snapshot.settlement_cash(settings.account_id, catalog),
        )
    return accounts


def calculate_all_targets(
    accounts: Mapping[AccountKind, Account],
    catalog: FundCatalog,
) -> tuple[dict[AccountKind, list[TargetEntry]], list[TargetEntry]]:
    """
    Targets for every account, with risk placement across the retirement pair.

    Returns:
        Tuple of (targets per account, combined retirement pool targets). The
        pool is empty unless both retirement accounts are present.
    """
    targets = {kind: calculate_account_targets(account, catalog) for kind, account in accounts.items()}

    roth = accounts.get(AccountKind.ROTH_IRA)
    traditional = accounts.get(AccountKind.TRADITIONAL_IRA)
    pool: list[TargetEntry] = []
    if roth is not None and traditional is not None:
        routed = route_retirement_targets(roth, traditional, catalog)
        targets[AccountKind.ROTH_IRA] = routed.roth
        targets[AccountKind.TRADITIONAL_IRA] = routed.traditional
        pool = routed.pool

    return targets, pool


def rebalance_snapshot(
    snapshot: HoldingsSnapshot,
    config: RebalanceConfig,
    catalog: FundCatalog,
) -> RebalanceResult:
    """
    Compute targets and buy orders for a prepared holdings snapshot.

    Args:
        snapshot: Current holdings and prices
        config: Accounts, splits and cash additions, already checked by
            validate_config
        catalog: Fund catalog

    Returns:
        RebalanceResult with per-account plans and warnings
    """
    accounts = value_accounts(snapshot, config, catalog)
    targets, pool = calculate_all_targets(accounts, catalog)

    plans = {}
    warnings = []
    for kind, account in accounts.items():
        available_cash = account.cash_addition
        if config.deploy_settlement_cash:
            available_cash += account.settlement_cash

        order_plan = generate_orders(
            account_kind=kind,
            targets=targets[kind],
            holdings=snapshot.for_account(account.account_id),
            available_cash=available_cash,
            split=account.split,
            catalog=catalog,
            prices=snapshot.prices,
        )
        warnings.extend(order_plan.warnings)
        plans[kind] = AccountPlan(
            account=account,
            holdings=snapshot.for_account(account.account_id),
            targets=targets[kind],
            orders=order_plan.orders,
            available_cash=available_cash,
            unallocated_cash=order_plan.unallocated,
        )

    return RebalanceResult(plans=plans, warnings=warnings, retirement_pool_targets=pool)


def run_rebalance(
    transactions_by_account: Mapping[str, list[Transaction]],
    config: RebalanceConfig,
    catalog: Optional[FundCatalog] = None,
    prices: Optional[Mapping[str, Decimal]] = None,
    decision_logger: Optional[DecisionLogger] = None,
    run_id: Optional[str] = None,
    config_source: Optional[str] = None,
) -> RebalanceResult:
    """
    Run a complete rebalance from transaction history.

    Args:
        transactions_by_account: Transaction history keyed by account id
        config: Accounts, splits and cash additions
        catalog: Fund catalog (defaults to the standard lineup)
        prices: Optional current prices, overriding transaction prices
        decision_logger: Optional audit log written after a successful run
        run_id: Identifier recorded in the audit log
        config_source: Path of the configuration file, for the audit log

    Returns:
        RebalanceResult

    Raises:
        UnknownSymbolError: Transaction or price for a symbol not in the catalog
        NegativeCashError: Negative cash addition
        ConfigurationError: Invalid account configuration
    """
    catalog = catalog or FundCatalog.default()
    run_id = run_id or str(uuid.uuid4())

    validate_config(config)

    configured_ids = {s.account_id for s in config.accounts.values()}
    ignored = sorted(set(transactions_by_account) - configured_ids)
    if ignored:
        logger.debug("Ignoring transactions of unconfigured accounts: %s", ", ".join(ignored))
    transactions = {
        account_id: txs
        for account_id, txs in transactions_by_account.items()
        if account_id in configured_ids
    }

    snapshot = build_holdings_snapshot(transactions, catalog, prices)
    result = rebalance_snapshot(snapshot, config, catalog)

    logger.info(
        "Rebalance %s complete: %d accounts, $%s in orders, %d warnings",
        run_id, len(result.plans), result.total_orders_value, len(result.warnings),
    )

    if decision_logger is not None:
        decision_logger.log_config_loaded(run_id, config, config_source)
        decision_logger.log_holdings_loaded(run_id, snapshot)
        decision_logger.log_targets_calculated(run_id, result)
        if result.retirement_pool_targets:
            decision_logger.log_retirement_routed(run_id, result)
        decision_logger.log_orders_generated(run_id, result)
        if result.warnings:
            decision_logger.log_warnings_reported(run_id, result.warnings)

    return result
