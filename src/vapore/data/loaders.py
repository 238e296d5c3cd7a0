"""
Data loading and saving functions for CSV files.

Handles ingestion of transaction history and current prices, as well as
output of buy orders and per-account targets.
"""

from collections import defaultdict
from decimal import Decimal
from pathlib import Path

import pandas as pd

from vapore.data.schemas import (
    ORDERS_SCHEMA,
    PRICES_SCHEMA,
    TARGETS_SCHEMA,
    TRANSACTIONS_SCHEMA,
    FileSchema,
)
from vapore.errors import DataLoadError
from vapore.models import RebalanceResult, Transaction


def load_transactions(file_path: str | Path) -> dict[str, list[Transaction]]:
    """
    Load transaction history from CSV file.

    Args:
        file_path: Path to CSV file with columns:
                   account_id, trade_date, symbol, shares, value[, transaction_type]

    Returns:
        Dictionary mapping account_id -> transactions in file order

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, TRANSACTIONS_SCHEMA)

    try:
        df["trade_date"] = pd.to_datetime(df["trade_date"]).dt.date
    except (ValueError, TypeError) as e:
        raise DataLoadError(f"Invalid trade_date in {file_path}: {e}")

    for column in ("shares", "value"):
        df[column] = pd.to_numeric(df[column], errors="coerce")

    required = ["account_id", "trade_date", "symbol", "shares", "value"]
    if df[required].isna().any().any():
        raise DataLoadError(f"File {file_path} has blank or non-numeric values in {required}")

    transactions: dict[str, list[Transaction]] = defaultdict(list)
    for _, row in df.iterrows():
        tx_type = row.get("transaction_type", "")
        account_id = str(row["account_id"]).strip()
        transactions[account_id].append(
            Transaction(
                account_id=account_id,
                trade_date=row["trade_date"],
                symbol=str(row["symbol"]).upper().strip(),
                shares=Decimal(str(row["shares"])),
                value=Decimal(str(row["value"])),
                transaction_type="" if pd.isna(tx_type) else str(tx_type),
            )
        )

    return dict(transactions)


def load_prices(file_path: str | Path) -> dict[str, Decimal]:
    """
    Load current prices from CSV file.

    Args:
        file_path: Path to CSV file with columns: symbol, price[, date].
                   When dated, the most recent row per symbol is used.

    Returns:
        Dictionary mapping symbol -> price

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, PRICES_SCHEMA)

    df["symbol"] = df["symbol"].str.upper().str.strip()
    if "date" in df.columns:
        df["date"] = pd.to_datetime(df["date"])
        df = df.sort_values("date", kind="stable")
    df = df.drop_duplicates(subset="symbol", keep="last")
    df["price"] = pd.to_numeric(df["price"], errors="coerce")

    if df["price"].isna().any():
        raise DataLoadError(f"File {file_path} has symbols without a numeric price")

    return {
        str(row["symbol"]): Decimal(str(row["price"]))
        for _, row in df.iterrows()
    }


def save_orders(result: RebalanceResult, output_path: str | Path) -> Path:
    """
    Save the buy orders of every account to CSV file.

    Args:
        result: Completed rebalance result
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for kind, plan in result.plans.items():
        for order in plan.orders:
            records.append({
                "account": kind.label,
                "account_id": plan.account.account_id,
                "symbol": order.symbol,
                "dollar_amount": float(order.dollar_amount),
                "price": float(order.price) if order.price is not None else None,
                "approx_shares": (
                    float(order.approx_shares) if order.approx_shares is not None else None
                ),
            })

    df = pd.DataFrame(records, columns=ORDERS_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def save_targets(result: RebalanceResult, output_path: str | Path) -> Path:
    """
    Save current value, target and purchase per account and symbol to CSV file.

    Args:
        result: Completed rebalance result
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for kind, plan in result.plans.items():
        purchases = {o.symbol: o.dollar_amount for o in plan.orders}
        for entry in plan.targets:
            records.append({
                "account": kind.label,
                "account_id": plan.account.account_id,
                "symbol": entry.symbol,
                "current_value": float(plan.current_value(entry.symbol)),
                "target_value": float(entry.target_value),
                "purchase": float(purchases.get(entry.symbol, Decimal("0"))),
            })

    df = pd.DataFrame(records, columns=TARGETS_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file and validate against schema.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        df = pd.read_csv(file_path, dtype=schema.string_columns)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    df.columns = [str(c).strip() for c in df.columns]

    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df
