"""
Vanguard download CSV import.

Parses the CSV file produced by Vanguard's "download" feature into
transactions the rebalance engine can consume.

Vanguard CSV format:
- A holdings section: Account Number, Investment Name, Symbol, Shares,
  Share Price, Total Value (one row per position, settlement fund included)
- A blank line, then a transaction section whose header contains
  "Trade Date": Account Number, Trade Date, Settlement Date, Transaction Type,
  Transaction Description, Investment Name, Symbol, Shares, Share Price,
  Principal Amount, Commissions and Fees, Net Amount, ...
- Trade dates are YYYY-MM-DD
- Net Amount is negative for purchases

The transaction section only covers recent history, so current positions
are taken from the holdings section. Each position becomes one "Position"
transaction dated at the download date; the transaction section is kept as
history.
"""

import csv
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Optional

from vapore.errors import DataLoadError
from vapore.models import Transaction


logger = logging.getLogger(__name__)

TRANSACTION_SECTION_MARKER = "Trade Date"
POSITION_TRANSACTION_TYPE = "Position"

# Rows with this many cells or fewer are titles or spacers
MIN_ROW_CELLS = 4


@dataclass
class VanguardDownload:
    """
    Parsed Vanguard download.

    Attributes:
        positions: Current positions as transactions, keyed by account number
        history: Transaction-section rows, keyed by account number
        prices: Quoted share price per symbol from the holdings section
        as_of: Date the positions are valued at
    """
    positions: dict[str, list[Transaction]] = field(default_factory=dict)
    history: dict[str, list[Transaction]] = field(default_factory=dict)
    prices: dict[str, Decimal] = field(default_factory=dict)
    as_of: date = field(default_factory=date.today)

    def account_ids(self) -> list[str]:
        return sorted(set(self.positions) | set(self.history))

    def require_accounts(self, account_ids: Iterable[str]) -> None:
        """
        Check that every configured account appears in the download.

        Raises:
            DataLoadError: Listing the accounts that were found
        """
        available = self.account_ids()
        for account_id in account_ids:
            if account_id not in available:
                raise DataLoadError(
                    f"Account {account_id} not found in Vanguard download. "
                    f"Accounts in file: {', '.join(available) or 'none'}"
                )


def parse_amount(value_str: str) -> Decimal:
    """Parse a Vanguard amount (e.g. '1,234.56', '$1,234.56', '-12.00' or '(12.00)')."""
    if value_str is None or value_str.strip() in ("", "--"):
        return Decimal("0")

    cleaned = value_str.strip().strip('"').replace("$", "").replace(",", "")

    try:
        if cleaned.startswith("(") and cleaned.endswith(")"):
            return -Decimal(cleaned[1:-1])
        return Decimal(cleaned) if cleaned else Decimal("0")
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value_str!r}")


def parse_trade_date(date_str: str) -> date:
    """Parse a Vanguard trade date ('2024-03-15', or '03/15/2024' in older files)."""
    date_str = date_str.strip().strip('"')
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        return datetime.strptime(date_str, "%m/%d/%Y").date()


def _symbol(row: dict[str, str]) -> Optional[str]:
    symbol = (row.get("Symbol") or "").strip().upper()
    # Cash sweeps and settlement lines carry a blank or placeholder symbol
    if len(symbol) <= 1:
        return None
    return symbol


def parse_vanguard_download(
    filepath: str | Path,
    as_of: Optional[date] = None,
) -> VanguardDownload:
    """
    Parse a Vanguard download CSV file.

    Args:
        filepath: Path to the CSV file
        as_of: Valuation date for positions (defaults to today)

    Returns:
        VanguardDownload with positions, history and quoted prices

    Raises:
        DataLoadError: If the file is missing or a row cannot be parsed
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise DataLoadError(f"File not found: {filepath}")

    download = VanguardDownload(as_of=as_of or date.today())
    positions: dict[str, list[Transaction]] = defaultdict(list)
    history: dict[str, list[Transaction]] = defaultdict(list)

    holdings_header: list[str] = []
    transaction_header: list[str] = []
    in_holdings = True

    with open(filepath, "r", encoding="utf-8-sig", newline="") as f:
        for line_no, cells in enumerate(csv.reader(f), start=1):
            cells = [c.strip() for c in cells]
            if TRANSACTION_SECTION_MARKER in cells:
                in_holdings = False
            if len(cells) <= MIN_ROW_CELLS:
                continue

            if in_holdings:
                if not holdings_header:
                    holdings_header = cells
                    continue
                row = dict(zip(holdings_header, cells))
                try:
                    _add_position(row, download, positions)
                except ValueError as e:
                    raise DataLoadError(f"{filepath}:{line_no}: invalid holdings row: {e}")
            else:
                if not transaction_header:
                    transaction_header = cells
                    continue
                row = dict(zip(transaction_header, cells))
                try:
                    _add_history(row, history)
                except ValueError as e:
                    raise DataLoadError(f"{filepath}:{line_no}: invalid transaction row: {e}")

    if not holdings_header:
        raise DataLoadError(f"No holdings section found in {filepath}")

    download.positions = dict(positions)
    download.history = dict(history)

    logger.info(
        "Parsed Vanguard download %s: %d accounts, %d positions, %d history rows",
        filepath.name,
        len(download.account_ids()),
        sum(len(v) for v in download.positions.values()),
        sum(len(v) for v in download.history.values()),
    )
    return download


def _add_position(
    row: dict[str, str],
    download: VanguardDownload,
    positions: dict[str, list[Transaction]],
) -> None:
    symbol = _symbol(row)
    account_id = (row.get("Account Number") or "").strip()
    if symbol is None or not account_id:
        return

    shares = parse_amount(row.get("Shares", ""))
    price = parse_amount(row.get("Share Price", ""))
    total_value = parse_amount(row.get("Total Value", ""))

    if price > 0:
        download.prices[symbol] = price

    positions[account_id].append(
        Transaction(
            account_id=account_id,
            trade_date=download.as_of,
            symbol=symbol,
            shares=shares,
            value=total_value,
            transaction_type=POSITION_TRANSACTION_TYPE,
        )
    )


def _add_history(row: dict[str, str], history: dict[str, list[Transaction]]) -> None:
    symbol = _symbol(row)
    account_id = (row.get("Account Number") or "").strip()
    trade_date_str = row.get(TRANSACTION_SECTION_MARKER, "")
    if symbol is None or not account_id or not trade_date_str:
        return

    net = row.get("Net Amount") or row.get("Principal Amount") or ""

    history[account_id].append(
        Transaction(
            account_id=account_id,
            trade_date=parse_trade_date(trade_date_str),
            symbol=symbol,
            shares=parse_amount(row.get("Shares", "")),
            value=-parse_amount(net),
            transaction_type=(row.get("Transaction Type") or "").strip(),
        )
    )
