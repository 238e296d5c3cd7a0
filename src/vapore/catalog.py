"""
Fund catalog for the Vanguard portfolio rebalancer.

The catalog is the immutable table of supported funds: asset class,
within-class target weight, relative risk and description. It is built once
at process start (defaults or YAML, see vapore.config) and injected into the
engine.
"""

from decimal import Decimal
from typing import Iterable

from vapore.errors import ConfigurationError, UnknownSymbolError
from vapore.models import AssetClass, Fund


WEIGHT_TOLERANCE = Decimal("1e-9")

DEFAULT_SETTLEMENT_SYMBOLS = frozenset({"VMFXX"})

DEFAULT_FUNDS = (
    Fund("VV", AssetClass.STOCK, Decimal("0.35"), 3, "US large cap"),
    Fund("VO", AssetClass.STOCK, Decimal("0.15"), 4, "US mid cap"),
    Fund("VB", AssetClass.STOCK, Decimal("0.10"), 5, "US small cap"),
    Fund("VXUS", AssetClass.STOCK, Decimal("0.28"), 6, "Total international stock"),
    Fund("VWO", AssetClass.STOCK, Decimal("0.12"), 7, "Emerging markets stock"),
    Fund("VTC", AssetClass.BOND, Decimal("0.50"), 1, "US total corporate bond"),
    Fund("BNDX", AssetClass.BOND, Decimal("0.50"), 2, "Total international bond"),
)


class FundCatalog:
    """
    Read-only table of funds keyed by symbol.

    Settlement symbols (money market sweep funds) are recognised as valid
    holdings but are never given a target.
    """

    def __init__(
        self,
        funds: Iterable[Fund],
        settlement_symbols: Iterable[str] = DEFAULT_SETTLEMENT_SYMBOLS,
    ):
        funds_by_symbol: dict[str, Fund] = {}
        for fund in funds:
            if fund.symbol in funds_by_symbol:
                raise ConfigurationError(f"Duplicate fund symbol in catalog: {fund.symbol}")
            if not Decimal("0") < fund.class_weight <= Decimal("1"):
                raise ConfigurationError(
                    f"class_weight for {fund.symbol} must be in (0, 1], got {fund.class_weight}"
                )
            funds_by_symbol[fund.symbol] = fund

        self._funds = funds_by_symbol
        self._settlement = frozenset(s.upper() for s in settlement_symbols)

        overlap = self._settlement & set(self._funds)
        if overlap:
            raise ConfigurationError(
                f"Settlement symbols cannot also be target funds: {sorted(overlap)}"
            )

        self._validate_class_weights()

    def _validate_class_weights(self) -> None:
        for asset_class in AssetClass:
            weights = [f.class_weight for f in self._funds.values() if f.asset_class is asset_class]
            if not weights:
                raise ConfigurationError(f"Catalog has no {asset_class.value.lower()} funds")
            total = sum(weights, Decimal("0"))
            if abs(total - Decimal("1")) > WEIGHT_TOLERANCE:
                raise ConfigurationError(
                    f"{asset_class.value.lower()} class weights must sum to 1, got {total}"
                )

    @classmethod
    def default(cls) -> "FundCatalog":
        """Catalog of the standard Vanguard ETF lineup."""
        return cls(DEFAULT_FUNDS)

    def fund(self, symbol: str) -> Fund:
        """
        Look up a fund by symbol.

        Raises:
            UnknownSymbolError: If the symbol is not a target fund
        """
        try:
            return self._funds[symbol]
        except KeyError:
            raise UnknownSymbolError(symbol) from None

    def class_weight(self, symbol: str) -> Decimal:
        return self.fund(symbol).class_weight

    def asset_class(self, symbol: str) -> AssetClass:
        return self.fund(symbol).asset_class

    def risk_rank(self, symbol: str) -> int:
        return self.fund(symbol).risk_rank

    def all_symbols(self) -> frozenset[str]:
        return frozenset(self._funds)

    def funds(self) -> list[Fund]:
        """All funds sorted by symbol."""
        return [self._funds[s] for s in sorted(self._funds)]

    def funds_in_class(self, asset_class: AssetClass) -> list[Fund]:
        return [f for f in self.funds() if f.asset_class is asset_class]

    @property
    def settlement_symbols(self) -> frozenset[str]:
        return self._settlement

    def is_settlement(self, symbol: str) -> bool:
        return symbol in self._settlement

    def require_known(self, symbol: str, source: str = "") -> None:
        """
        Validate that a symbol is either a target fund or a settlement fund.

        Raises:
            UnknownSymbolError: If the symbol is neither
        """
        if symbol not in self._funds and symbol not in self._settlement:
            raise UnknownSymbolError(symbol, source)

    def by_risk(self) -> list[Fund]:
        """
        Funds ordered riskiest first: stocks by risk rank descending, then
        bonds by risk rank descending. Ties break on symbol.
        """
        class_order = {AssetClass.STOCK: 0, AssetClass.BOND: 1}
        return sorted(
            self._funds.values(),
            key=lambda f: (class_order[f.asset_class], -f.risk_rank, f.symbol),
        )

    def describe(self, symbol: str) -> str:
        fund = self._funds.get(symbol)
        if fund is None or not fund.description:
            return f"No description for {symbol}"
        return f"{fund.symbol}: {fund.description}"

    def describe_all(self) -> str:
        """Descriptions of every fund, one per line, riskiest first."""
        return "\n".join(self.describe(f.symbol) for f in self.by_risk())

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._funds

    def __len__(self) -> int:
        return len(self._funds)

    def __repr__(self) -> str:
        return f"FundCatalog({sorted(self._funds)})"

