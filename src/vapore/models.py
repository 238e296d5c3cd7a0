"""
Core data models for the Vanguard portfolio rebalancer.

This module defines the fundamental data structures used throughout the system,
including funds, accounts, holdings, target entries and purchase orders.
All monetary and share quantities use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from vapore.errors import InsufficientDataError, InvalidSplitError


CENT = Decimal("0.01")
SHARE_PRECISION = Decimal("0.000001")


class AssetClass(Enum):
    """Top-level asset grouping used for the stock/bond split."""
    STOCK = "STOCK"
    BOND = "BOND"


class AccountKind(Enum):
    """Supported account types."""
    BROKERAGE = "BROKERAGE"
    ROTH_IRA = "ROTH_IRA"
    TRADITIONAL_IRA = "TRADITIONAL_IRA"

    @property
    def is_retirement(self) -> bool:
        """Roth and traditional IRAs share the retirement target pool."""
        return self is not AccountKind.BROKERAGE

    @property
    def label(self) -> str:
        return {
            AccountKind.BROKERAGE: "Brokerage",
            AccountKind.ROTH_IRA: "Roth IRA",
            AccountKind.TRADITIONAL_IRA: "Traditional IRA",
        }[self]


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    CONFIG_LOADED = "CONFIG_LOADED"
    HOLDINGS_LOADED = "HOLDINGS_LOADED"
    TARGETS_CALCULATED = "TARGETS_CALCULATED"
    RETIREMENT_ROUTED = "RETIREMENT_ROUTED"
    ORDERS_GENERATED = "ORDERS_GENERATED"
    WARNINGS_REPORTED = "WARNINGS_REPORTED"


@dataclass(frozen=True)
class StockBondSplit:
    """
    Fraction of an account targeted at stocks vs bonds.

    Attributes:
        stock: Stock fraction (0-1)
        bond: Bond fraction (0-1)

    Raises:
        InvalidSplitError: If a fraction is negative or the two do not sum to 1
    """
    stock: Decimal
    bond: Decimal

    def __post_init__(self) -> None:
        if not (self.stock.is_finite() and self.bond.is_finite()):
            raise InvalidSplitError(
                f"Split fractions must be finite, got stock={self.stock}, bond={self.bond}"
            )
        if self.stock < 0 or self.bond < 0:
            raise InvalidSplitError(
                f"Split fractions must be non-negative, got stock={self.stock}, bond={self.bond}"
            )
        if self.stock + self.bond != Decimal("1"):
            raise InvalidSplitError(
                f"Split fractions must sum to 1, got stock={self.stock} + bond={self.bond} "
                f"= {self.stock + self.bond}"
            )

    @classmethod
    def from_percent(cls, stock_percent, bond_percent) -> "StockBondSplit":
        """Build a split from percentages, e.g. ``from_percent(60, 40)``."""
        return cls(
            stock=Decimal(str(stock_percent)) / Decimal("100"),
            bond=Decimal(str(bond_percent)) / Decimal("100"),
        )

    @classmethod
    def default_for(cls, kind: AccountKind) -> "StockBondSplit":
        """Default split: 60/40 for brokerage, 90/10 for retirement accounts."""
        if kind.is_retirement:
            return cls(stock=Decimal("0.9"), bond=Decimal("0.1"))
        return cls(stock=Decimal("0.6"), bond=Decimal("0.4"))

    def fraction(self, asset_class: AssetClass) -> Decimal:
        """Fraction of the account targeted at the given asset class."""
        return self.stock if asset_class is AssetClass.STOCK else self.bond

    def __str__(self) -> str:
        return f"{self.stock * 100:.1f}/{self.bond * 100:.1f}"


@dataclass(frozen=True)
class Fund:
    """
    A single index fund in the catalog.

    Attributes:
        symbol: Ticker symbol (unique within the catalog)
        asset_class: Stock or Bond
        class_weight: Target share of the fund within its asset class (0-1]
        risk_rank: Relative risk; larger values are riskier
        description: Human-readable description
        whole_shares: True if the fund can only be bought in whole shares
    """
    symbol: str
    asset_class: AssetClass
    class_weight: Decimal
    risk_rank: int
    description: str = ""
    whole_shares: bool = False


@dataclass(frozen=True)
class Account:
    """
    One of the three supported accounts with its valuation for this run.

    Attributes:
        kind: Brokerage, Roth IRA or Traditional IRA
        account_id: Account number from the brokerage export
        total_value: Market value of holdings plus the pending cash addition
        split: Target stock/bond split
        cash_addition: New cash being added for this run
        settlement_cash: Balance held in settlement (money market) funds
    """
    kind: AccountKind
    account_id: str
    total_value: Decimal
    split: StockBondSplit
    cash_addition: Decimal = Decimal("0")
    settlement_cash: Decimal = Decimal("0")


@dataclass(frozen=True)
class Transaction:
    """
    A single transaction record from the transaction history.

    Attributes:
        account_id: Account the transaction belongs to
        trade_date: Date the trade was made
        symbol: Ticker symbol
        shares: Signed share delta (negative for sells)
        value: Dollar value invested (positive for purchases, negative for sales)
        transaction_type: Free-form type (Buy, Sell, Reinvestment, ...)
    """
    account_id: str
    trade_date: date
    symbol: str
    shares: Decimal
    value: Decimal
    transaction_type: str = ""

    @property
    def price(self) -> Optional[Decimal]:
        """Per-share price implied by the transaction, if any."""
        if self.shares == 0 or self.value == 0:
            return None
        return abs(self.value / self.shares)


@dataclass(frozen=True)
class Holding:
    """
    Aggregated position for one symbol within one account.

    Attributes:
        account_id: Account holding the position
        symbol: Ticker symbol
        shares: Total shares held
        market_value: Current market value
    """
    account_id: str
    symbol: str
    shares: Decimal
    market_value: Decimal

    @property
    def price(self) -> Optional[Decimal]:
        """Derived price, available only when shares are held."""
        if self.shares <= 0:
            return None
        return self.market_value / self.shares


@dataclass(frozen=True)
class TargetEntry:
    """Target dollar value for one symbol within one account."""
    account_kind: Optional[AccountKind]  # None for the combined retirement pool
    symbol: str
    target_value: Decimal


@dataclass(frozen=True)
class Order:
    """
    Buy instruction for one symbol within one account.

    Orders are never sells; dollar_amount is always non-negative.

    Attributes:
        account_kind: Account the order is for
        symbol: Ticker symbol
        dollar_amount: Dollars to invest
        price: Price used to estimate shares (None if unknown)
        approx_shares: dollar_amount / price, or None when price is unknown
    """
    account_kind: AccountKind
    symbol: str
    dollar_amount: Decimal
    price: Optional[Decimal] = None
    approx_shares: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.dollar_amount < 0:
            raise ValueError(f"Order amount must be non-negative, got {self.dollar_amount}")

    @classmethod
    def create(
        cls,
        account_kind: AccountKind,
        symbol: str,
        dollar_amount: Decimal,
        price: Optional[Decimal],
    ) -> "Order":
        """Factory method that estimates shares from the price when known."""
        approx_shares = None
        if price is not None and price > 0:
            approx_shares = (dollar_amount / price).quantize(SHARE_PRECISION)
        return cls(
            account_kind=account_kind,
            symbol=symbol,
            dollar_amount=dollar_amount,
            price=price,
            approx_shares=approx_shares,
        )


@dataclass
class AccountPlan:
    """
    Everything computed for one account in a run.

    Attributes:
        account: The valued account
        holdings: Current holdings by symbol
        targets: Target entries (after risk placement for retirement accounts)
        orders: Buy orders in deficit order
        available_cash: Cash that could be deployed
        unallocated_cash: Rounding remainder left undeployed
    """
    account: Account
    holdings: dict[str, Holding]
    targets: list[TargetEntry]
    orders: list[Order] = field(default_factory=list)
    available_cash: Decimal = Decimal("0")
    unallocated_cash: Decimal = Decimal("0")

    @property
    def total_ordered(self) -> Decimal:
        return sum((o.dollar_amount for o in self.orders), Decimal("0"))

    def target_for(self, symbol: str) -> Decimal:
        for entry in self.targets:
            if entry.symbol == symbol:
                return entry.target_value
        return Decimal("0")

    def current_value(self, symbol: str) -> Decimal:
        holding = self.holdings.get(symbol)
        return holding.market_value if holding else Decimal("0")


@dataclass
class RebalanceResult:
    """
    Output of a complete rebalance run.

    Attributes:
        plans: Per-account plans keyed by account kind
        warnings: Non-fatal conditions (missing prices for allocated symbols)
        retirement_pool_targets: Combined retirement targets before routing
        generated_at: When the run completed
    """
    plans: dict[AccountKind, AccountPlan]
    warnings: list[InsufficientDataError] = field(default_factory=list)
    retirement_pool_targets: list[TargetEntry] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    def orders_for(self, kind: AccountKind) -> list[Order]:
        plan = self.plans.get(kind)
        return list(plan.orders) if plan else []

    @property
    def total_orders_value(self) -> Decimal:
        return sum((p.total_ordered for p in self.plans.values()), Decimal("0"))


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        run_id: Rebalance run involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    run_id: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        run_id: Optional[str],
        details: dict,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            run_id=run_id,
            details=details,
        )


@dataclass(frozen=True)
class AccountSettings:
    """
    Per-account run settings supplied by configuration or the CLI.

    Attributes:
        kind: Account type
        account_id: Account number as it appears in the transaction history
        split: Target stock/bond split
        cash_addition: New cash being added (validated non-negative by the engine)
    """
    kind: AccountKind
    account_id: str
    split: StockBondSplit
    cash_addition: Decimal = Decimal("0")


@dataclass
class RebalanceConfig:
    """
    Rebalance run configuration loaded from YAML.

    Attributes:
        accounts: Settings for each configured account
        deploy_settlement_cash: Treat settlement fund balances as cash to invest
        output_dir: Directory for report and CSV output
    """
    accounts: dict[AccountKind, AccountSettings]
    deploy_settlement_cash: bool = True
    output_dir: str = "output"

    def settings_for(self, kind: AccountKind) -> Optional[AccountSettings]:
        return self.accounts.get(kind)
