"""
Holdings snapshot for the Vanguard portfolio rebalancer.

Aggregates the transaction history into one Holding per account and symbol,
and resolves the current price of every symbol. The snapshot is built once
per run and is read-only afterwards.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional

from vapore.catalog import FundCatalog
from vapore.models import CENT, Holding, Transaction


logger = logging.getLogger(__name__)

SETTLEMENT_PRICE = Decimal("1")


@dataclass(frozen=True)
class HoldingsSnapshot:
    """
    Current holdings of every account plus the prices used to value them.

    Attributes:
        holdings: account_id -> symbol -> Holding
        prices: symbol -> current price per share
    """
    holdings: dict[str, dict[str, Holding]] = field(default_factory=dict)
    prices: dict[str, Decimal] = field(default_factory=dict)

    def for_account(self, account_id: str) -> dict[str, Holding]:
        return dict(self.holdings.get(account_id, {}))

    def account_ids(self) -> set[str]:
        return set(self.holdings)

    def market_value(self, account_id: str) -> Decimal:
        """Total market value of an account, settlement funds included."""
        return sum(
            (h.market_value for h in self.holdings.get(account_id, {}).values()),
            Decimal("0"),
        )

    def settlement_cash(self, account_id: str, catalog: FundCatalog) -> Decimal:
        """Balance held in settlement (money market) funds."""
        return sum(
            (
                h.market_value
                for h in self.holdings.get(account_id, {}).values()
                if catalog.is_settlement(h.symbol)
            ),
            Decimal("0"),
        )

    def price(self, symbol: str) -> Optional[Decimal]:
        return self.prices.get(symbol)


def resolve_prices(
    transactions_by_account: Mapping[str, list[Transaction]],
    catalog: FundCatalog,
    supplied_prices: Optional[Mapping[str, Decimal]] = None,
) -> dict[str, Decimal]:
    """
    Determine the current price of each symbol.

    Supplied prices take precedence. Symbols without a supplied price use the
    price implied by their most recent transaction. Settlement funds are
    always priced at 1.

    Args:
        transactions_by_account: Transaction history keyed by account id
        catalog: Fund catalog used to validate symbols
        supplied_prices: Optional quotes keyed by symbol

    Returns:
        Dictionary mapping symbol -> price

    Raises:
        UnknownSymbolError: If a supplied price references an unknown symbol
    """
    prices: dict[str, Decimal] = {}
    latest: dict[str, Transaction] = {}

    for transactions in transactions_by_account.values():
        for tx in transactions:
            if tx.price is None:
                continue
            current = latest.get(tx.symbol)
            if current is None or tx.trade_date >= current.trade_date:
                latest[tx.symbol] = tx

    for symbol, tx in latest.items():
        prices[symbol] = tx.price

    for symbol, price in (supplied_prices or {}).items():
        catalog.require_known(symbol, source="price")
        if price is None or price <= 0:
            logger.warning("Ignoring non-positive price for %s: %s", symbol, price)
            continue
        prices[symbol] = Decimal(str(price))

    for symbol in catalog.settlement_symbols:
        prices[symbol] = SETTLEMENT_PRICE

    return prices


def aggregate_transactions(
    transactions: list[Transaction],
) -> dict[str, tuple[Decimal, Decimal]]:
    """
    Sum share deltas and transaction values per symbol.

    Args:
        transactions: Transactions for a single account

    Returns:
        Dictionary mapping symbol -> (total shares, net value invested)
    """
    totals: dict[str, list[Decimal]] = defaultdict(lambda: [Decimal("0"), Decimal("0")])
    for tx in transactions:
        totals[tx.symbol][0] += tx.shares
        totals[tx.symbol][1] += tx.value
    return {symbol: (shares, value) for symbol, (shares, value) in totals.items()}


def build_holdings_snapshot(
    transactions_by_account: Mapping[str, list[Transaction]],
    catalog: FundCatalog,
    supplied_prices: Optional[Mapping[str, Decimal]] = None,
) -> HoldingsSnapshot:
    """
    Build the holdings snapshot from the transaction history.

    One Holding is created per account and symbol with a positive share
    balance. Market value is shares times the resolved price; if no price can
    be resolved, the net amount invested is used instead.

    Args:
        transactions_by_account: Transaction history keyed by account id
        catalog: Fund catalog used to validate symbols
        supplied_prices: Optional quotes keyed by symbol

    Returns:
        HoldingsSnapshot

    Raises:
        UnknownSymbolError: If any transaction references an unknown symbol
    """
    for account_id, transactions in transactions_by_account.items():
        for tx in transactions:
            catalog.require_known(tx.symbol, source=f"transaction in account {account_id}")

    prices = resolve_prices(transactions_by_account, catalog, supplied_prices)

    holdings: dict[str, dict[str, Holding]] = {}
    for account_id, transactions in transactions_by_account.items():
        account_holdings: dict[str, Holding] = {}
        for symbol, (shares, net_value) in sorted(aggregate_transactions(transactions).items()):
            if shares <= 0:
                if shares < 0:
                    logger.warning(
                        "Account %s has a negative share balance for %s (%s); "
                        "transaction history may be incomplete",
                        account_id, symbol, shares,
                    )
                continue

            price = prices.get(symbol)
            if price is not None:
                market_value = (shares * price).quantize(CENT)
            else:
                market_value = max(net_value, Decimal("0")).quantize(CENT)
                logger.warning(
                    "No price for %s in account %s; valuing at net amount invested $%s",
                    symbol, account_id, market_value,
                )

            account_holdings[symbol] = Holding(
                account_id=account_id,
                symbol=symbol,
                shares=shares,
                market_value=market_value,
            )
        holdings[account_id] = account_holdings

    logger.info(
        "Built holdings snapshot: %d accounts, %d positions",
        len(holdings), sum(len(h) for h in holdings.values()),
    )
    return HoldingsSnapshot(holdings=holdings, prices=prices)
