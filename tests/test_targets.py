"""
Tests for per-account target allocation.
"""

from decimal import Decimal

import pytest

from vapore.allocation.targets import (
    baseline_mix,
    calculate_account_targets,
    calculate_targets,
    targets_by_symbol,
    total_target,
    validate_split,
)
from vapore.errors import InvalidSplitError
from vapore.models import Account, AccountKind, StockBondSplit


class TestStockBondSplit:
    """Tests for split validation."""

    def test_defaults(self):
        assert StockBondSplit.default_for(AccountKind.BROKERAGE) == StockBondSplit(
            Decimal("0.6"), Decimal("0.4")
        )
        for kind in (AccountKind.ROTH_IRA, AccountKind.TRADITIONAL_IRA):
            assert StockBondSplit.default_for(kind) == StockBondSplit(
                Decimal("0.9"), Decimal("0.1")
            )

    def test_split_not_summing_to_one(self):
        """A 0.5/0.6 split is rejected."""
        with pytest.raises(InvalidSplitError):
            validate_split("0.5", "0.6")

    def test_negative_fraction(self):
        with pytest.raises(InvalidSplitError, match="non-negative"):
            StockBondSplit(Decimal("1.2"), Decimal("-0.2"))

    def test_non_numeric(self):
        with pytest.raises(InvalidSplitError, match="numeric"):
            validate_split("sixty", "0.4")

    @pytest.mark.parametrize("stock,bond", [
        ("NaN", "0.4"),
        ("0.6", "Infinity"),
        ("-Infinity", "1"),
    ])
    def test_non_finite_fraction(self, stock, bond):
        """Non-finite fractions raise InvalidSplitError, not a decimal error."""
        with pytest.raises(InvalidSplitError, match="finite"):
            StockBondSplit(Decimal(stock), Decimal(bond))

    def test_non_finite_percent(self):
        with pytest.raises(InvalidSplitError):
            StockBondSplit.from_percent(float("nan"), 40)

    def test_from_percent(self):
        split = StockBondSplit.from_percent(70, 30)
        assert split.stock == Decimal("0.7")
        assert split.bond == Decimal("0.3")

    def test_float_input_is_exact(self):
        """Floats go through str() so 0.7 + 0.3 sums to exactly 1."""
        split = validate_split(0.7, 0.3)
        assert split.stock + split.bond == Decimal("1")


class TestCalculateTargets:
    """Tests for calculate_targets."""

    def test_formula(self, catalog):
        """target = total * split fraction * class weight."""
        split = StockBondSplit(Decimal("0.6"), Decimal("0.4"))
        targets = targets_by_symbol(
            calculate_targets(AccountKind.BROKERAGE, Decimal("10000"), split, catalog)
        )

        assert targets["VV"] == Decimal("2100.00")  # 10000 * 0.6 * 0.35
        assert targets["VWO"] == Decimal("720.00")  # 10000 * 0.6 * 0.12
        assert targets["VTC"] == Decimal("2000.00")  # 10000 * 0.4 * 0.5
        assert targets["BNDX"] == Decimal("2000.00")

    def test_one_entry_per_symbol(self, catalog):
        entries = calculate_targets(
            AccountKind.ROTH_IRA, Decimal("5000"),
            StockBondSplit.default_for(AccountKind.ROTH_IRA), catalog,
        )
        assert {e.symbol for e in entries} == catalog.all_symbols()
        assert all(e.account_kind is AccountKind.ROTH_IRA for e in entries)

    @pytest.mark.parametrize("total", ["10000", "1234.57", "0.07", "987654.32"])
    def test_sum_within_rounding_epsilon(self, catalog, total):
        """Targets sum to the total within one cent per symbol."""
        total = Decimal(total)
        split = StockBondSplit(Decimal("0.65"), Decimal("0.35"))
        entries = calculate_targets(AccountKind.BROKERAGE, total, split, catalog)

        epsilon = Decimal("0.01") * len(catalog)
        assert abs(total_target(entries) - total) <= epsilon

    def test_zero_total(self, catalog):
        """A zero-value account has all-zero targets."""
        entries = calculate_targets(
            AccountKind.BROKERAGE, Decimal("0"),
            StockBondSplit.default_for(AccountKind.BROKERAGE), catalog,
        )
        assert all(e.target_value == 0 for e in entries)

    def test_all_stock_split(self, catalog):
        entries = calculate_targets(
            AccountKind.ROTH_IRA, Decimal("1000"),
            StockBondSplit(Decimal("1"), Decimal("0")), catalog,
        )
        targets = targets_by_symbol(entries)
        assert targets["VTC"] == 0
        assert targets["BNDX"] == 0
        assert total_target(entries) == Decimal("1000.00")

    def test_account_targets_use_account_split(self, catalog):
        account = Account(
            kind=AccountKind.TRADITIONAL_IRA,
            account_id="33333333",
            total_value=Decimal("2000"),
            split=StockBondSplit(Decimal("0.5"), Decimal("0.5")),
        )
        targets = targets_by_symbol(calculate_account_targets(account, catalog))
        assert targets["VTC"] == Decimal("500.00")


class TestBaselineMix:
    """Tests for the baseline mix used to invest surplus cash."""

    def test_mix_sums_to_one(self, catalog):
        mix = baseline_mix(StockBondSplit(Decimal("0.6"), Decimal("0.4")), catalog)
        assert sum(mix.values()) == Decimal("1")

    def test_mix_values(self, catalog):
        mix = baseline_mix(StockBondSplit(Decimal("0.9"), Decimal("0.1")), catalog)
        assert mix["VV"] == Decimal("0.315")
        assert mix["BNDX"] == Decimal("0.05")
