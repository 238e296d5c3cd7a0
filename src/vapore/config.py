"""
Configuration loading and management for the Vanguard portfolio rebalancer.

This module loads the rebalance configuration (accounts, splits, cash
additions) and optional custom fund catalogs from YAML files, and applies
command-line overrides on top of them.
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import yaml

from vapore.allocation.targets import validate_split
from vapore.catalog import DEFAULT_SETTLEMENT_SYMBOLS, FundCatalog
from vapore.errors import ConfigurationError, NegativeCashError
from vapore.models import (
    AccountKind,
    AccountSettings,
    AssetClass,
    Fund,
    RebalanceConfig,
    StockBondSplit,
)


# YAML keys for each account section
ACCOUNT_KEYS = {
    "brokerage": AccountKind.BROKERAGE,
    "roth_ira": AccountKind.ROTH_IRA,
    "traditional_ira": AccountKind.TRADITIONAL_IRA,
}


def _read_yaml(path: str | Path, what: str) -> dict[str, Any]:
    path = Path(path)

    if not path.exists():
        raise ConfigurationError(f"{what} file not found: {path}")

    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {what.lower()} file: {e}")

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{what} file must contain a mapping: {path}")
    return raw


def load_rebalance_config(config_path: str | Path) -> RebalanceConfig:
    """
    Load a rebalance configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        RebalanceConfig with validated settings

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
        NegativeCashError: If a cash addition is negative
        InvalidSplitError: If a split does not sum to 1
    """
    return _parse_rebalance_config(_read_yaml(config_path, "Configuration"))


def _parse_rebalance_config(raw: dict[str, Any]) -> RebalanceConfig:
    """
    Parse and validate a raw configuration dictionary.

    Raises:
        ConfigurationError: If required fields are missing or invalid
    """
    raw_accounts = raw.get("accounts")
    if not isinstance(raw_accounts, dict) or not raw_accounts:
        raise ConfigurationError("Missing required configuration field: accounts")

    unknown = set(raw_accounts) - set(ACCOUNT_KEYS)
    if unknown:
        raise ConfigurationError(
            f"Unknown account section(s): {', '.join(sorted(unknown))}. "
            f"Expected one of: {', '.join(ACCOUNT_KEYS)}"
        )

    accounts = {}
    for key, kind in ACCOUNT_KEYS.items():
        if key in raw_accounts:
            accounts[kind] = _parse_account(kind, raw_accounts[key] or {})

    deploy = raw.get("deploy_settlement_cash", True)
    if not isinstance(deploy, bool):
        raise ConfigurationError(
            f"deploy_settlement_cash must be true or false, got {deploy!r}"
        )

    return RebalanceConfig(
        accounts=accounts,
        deploy_settlement_cash=deploy,
        output_dir=str(raw.get("output_dir", "output")),
    )


def _parse_account(kind: AccountKind, raw: dict[str, Any]) -> AccountSettings:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{kind.label} section must be a mapping")

    account_id = str(raw.get("account_id", "")).strip()
    if not account_id:
        raise ConfigurationError(f"{kind.label} account_id cannot be empty")

    cash_addition = _parse_decimal(raw.get("cash_addition", "0"), f"{kind.label} cash_addition")
    if cash_addition < 0:
        raise NegativeCashError(kind.label, cash_addition)

    raw_split = raw.get("split")
    if raw_split is None:
        split = StockBondSplit.default_for(kind)
    elif isinstance(raw_split, dict) and "stock" in raw_split and "bond" in raw_split:
        split = validate_split(raw_split["stock"], raw_split["bond"])
    else:
        raise ConfigurationError(f"{kind.label} split must have stock and bond fractions")

    return AccountSettings(
        kind=kind,
        account_id=account_id,
        split=split,
        cash_addition=cash_addition,
    )


def _parse_decimal(
    value: Any,
    field_name: str,
    min_val: Decimal | None = None,
    max_val: Decimal | None = None,
) -> Decimal:
    """
    Parse a decimal value with optional range validation.

    Args:
        value: The value to parse
        field_name: Name of the field for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Returns:
        Parsed Decimal

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")
    try:
        decimal_value = Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if not decimal_value.is_finite():
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if min_val is not None and decimal_value < min_val:
        raise ConfigurationError(
            f"{field_name} must be >= {min_val}, got {decimal_value}"
        )

    if max_val is not None and decimal_value > max_val:
        raise ConfigurationError(
            f"{field_name} must be <= {max_val}, got {decimal_value}"
        )

    return decimal_value


def load_fund_catalog(catalog_path: str | Path) -> FundCatalog:
    """
    Load a custom fund catalog from a YAML file.

    Expected format::

        funds:
          - {symbol: VTI, asset_class: stock, class_weight: 1, risk_rank: 3}
          - {symbol: BND, asset_class: bond, class_weight: 1, risk_rank: 1}
        settlement_symbols: [VMFXX]

    Raises:
        ConfigurationError: If the file is invalid or the catalog is inconsistent
    """
    raw = _read_yaml(catalog_path, "Fund catalog")

    raw_funds = raw.get("funds")
    if not isinstance(raw_funds, list) or not raw_funds:
        raise ConfigurationError("Fund catalog must contain a non-empty funds list")

    funds = [_parse_fund(entry, i) for i, entry in enumerate(raw_funds)]

    settlement = raw.get("settlement_symbols", sorted(DEFAULT_SETTLEMENT_SYMBOLS))
    if not isinstance(settlement, list):
        raise ConfigurationError("settlement_symbols must be a list")

    return FundCatalog(funds, settlement_symbols=frozenset(str(s).upper() for s in settlement))


def _parse_fund(raw: Any, index: int) -> Fund:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Fund entry {index} must be a mapping")

    for required in ("symbol", "asset_class", "class_weight", "risk_rank"):
        if required not in raw:
            raise ConfigurationError(f"Fund entry {index} is missing {required}")

    symbol = str(raw["symbol"]).strip().upper()

    try:
        asset_class = AssetClass(str(raw["asset_class"]).upper())
    except ValueError:
        raise ConfigurationError(
            f"Invalid asset_class for {symbol}: {raw['asset_class']}. Expected stock or bond"
        )

    try:
        risk_rank = int(raw["risk_rank"])
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid risk_rank for {symbol}: {raw['risk_rank']}")

    return Fund(
        symbol=symbol,
        asset_class=asset_class,
        class_weight=_parse_decimal(raw["class_weight"], f"{symbol} class_weight"),
        risk_rank=risk_rank,
        description=str(raw.get("description", "")),
        whole_shares=bool(raw.get("whole_shares", False)),
    )


def apply_overrides(
    config: Optional[RebalanceConfig],
    account_ids: Optional[dict[AccountKind, Optional[str]]] = None,
    cash_additions: Optional[dict[AccountKind, Optional[Decimal]]] = None,
    stock_percents: Optional[dict[AccountKind, Optional[Decimal]]] = None,
    bond_percents: Optional[dict[AccountKind, Optional[Decimal]]] = None,
) -> RebalanceConfig:
    """
    Apply command-line overrides on top of a (possibly absent) configuration.

    An account is added when an account id is given for it. A stock or bond
    percentage given alone implies the other as 100 minus it.

    Args:
        config: Configuration loaded from YAML, or None
        account_ids: Account id per kind
        cash_additions: Cash addition per kind
        stock_percents: Stock percentage (0-100) per kind
        bond_percents: Bond percentage (0-100) per kind

    Returns:
        New RebalanceConfig with overrides applied

    Raises:
        ConfigurationError: If an override targets an account with no id
        InvalidSplitError: If the resulting split does not sum to 100%
    """
    account_ids = account_ids or {}
    cash_additions = cash_additions or {}
    stock_percents = stock_percents or {}
    bond_percents = bond_percents or {}

    base = config or RebalanceConfig(accounts={})
    accounts = dict(base.accounts)

    for kind in AccountKind:
        current = accounts.get(kind)
        account_id = account_ids.get(kind) or (current.account_id if current else None)
        cash = cash_additions.get(kind)
        stock = stock_percents.get(kind)
        bond = bond_percents.get(kind)

        if account_id is None:
            if cash is not None or stock is not None or bond is not None:
                raise ConfigurationError(
                    f"{kind.label} overrides given but no account id is configured"
                )
            continue

        split = current.split if current else StockBondSplit.default_for(kind)
        if stock is not None or bond is not None:
            if stock is None:
                stock = Decimal("100") - bond
            if bond is None:
                bond = Decimal("100") - stock
            split = StockBondSplit.from_percent(stock, bond)

        accounts[kind] = AccountSettings(
            kind=kind,
            account_id=account_id,
            split=split,
            cash_addition=cash if cash is not None else (
                current.cash_addition if current else Decimal("0")
            ),
        )

    return RebalanceConfig(
        accounts=accounts,
        deploy_settlement_cash=base.deploy_settlement_cash,
        output_dir=base.output_dir,
    )


def write_config(config: RebalanceConfig, output_path: str | Path) -> None:
    """
    Write a RebalanceConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    keys_by_kind = {kind: key for key, kind in ACCOUNT_KEYS.items()}
    config_dict = {
        "accounts": {
            keys_by_kind[kind]: {
                "account_id": settings.account_id,
                "cash_addition": str(settings.cash_addition),
                "split": {
                    "stock": str(settings.split.stock),
                    "bond": str(settings.split.bond),
                },
            }
            for kind, settings in config.accounts.items()
        },
        "deploy_settlement_cash": config.deploy_settlement_cash,
        "output_dir": config.output_dir,
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
