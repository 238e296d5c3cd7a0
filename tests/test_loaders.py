"""
Tests for CSV loading and saving.
"""

from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from vapore.data.loaders import load_prices, load_transactions, save_orders, save_targets
from vapore.data.schemas import ORDERS_SCHEMA, TARGETS_SCHEMA
from vapore.engine import run_rebalance
from vapore.errors import DataLoadError
from vapore.models import AccountKind


class TestLoadTransactions:
    """Tests for load_transactions."""

    def test_grouped_by_account(self, temp_output_dir):
        path = temp_output_dir / "transactions.csv"
        path.write_text(
            "account_id,trade_date,symbol,shares,value,transaction_type\n"
            "01234567,2024-01-02,vv,10,2000.00,Buy\n"
            "01234567,2024-02-01,VTC,-2.5,-195.00,Sell\n"
            "22222222,2024-01-03,VXUS,50,3000,\n"
        )

        transactions = load_transactions(path)

        # Leading zeros in account numbers are preserved
        assert set(transactions) == {"01234567", "22222222"}
        first, second = transactions["01234567"]
        assert first.symbol == "VV"
        assert first.trade_date == date(2024, 1, 2)
        assert first.shares == Decimal("10")
        assert first.value == Decimal("2000")
        assert first.transaction_type == "Buy"
        assert second.shares == Decimal("-2.5")
        assert transactions["22222222"][0].transaction_type == ""

    def test_type_column_optional(self, temp_output_dir):
        path = temp_output_dir / "transactions.csv"
        path.write_text(
            "account_id,trade_date,symbol,shares,value\n"
            "1,2024-01-02,VV,1,250\n"
        )
        assert load_transactions(path)["1"][0].transaction_type == ""

    def test_missing_column(self, temp_output_dir):
        path = temp_output_dir / "transactions.csv"
        path.write_text("account_id,trade_date,symbol,shares\n1,2024-01-02,VV,1\n")

        with pytest.raises(DataLoadError, match="missing required columns"):
            load_transactions(path)

    def test_non_numeric_shares(self, temp_output_dir):
        path = temp_output_dir / "transactions.csv"
        path.write_text(
            "account_id,trade_date,symbol,shares,value\n"
            "1,2024-01-02,VV,ten,250\n"
        )
        with pytest.raises(DataLoadError, match="non-numeric"):
            load_transactions(path)

    def test_missing_file(self, temp_output_dir):
        with pytest.raises(DataLoadError, match="not found"):
            load_transactions(temp_output_dir / "nope.csv")

    def test_empty_file(self, temp_output_dir):
        path = temp_output_dir / "transactions.csv"
        path.write_text("")
        with pytest.raises(DataLoadError, match="Failed to load"):
            load_transactions(path)


class TestLoadPrices:
    """Tests for load_prices."""

    def test_undated(self, temp_output_dir):
        path = temp_output_dir / "prices.csv"
        path.write_text("symbol,price\nvv,250.10\nVTC,78\n")

        assert load_prices(path) == {"VV": Decimal("250.1"), "VTC": Decimal("78")}

    def test_latest_date_wins(self, temp_output_dir):
        path = temp_output_dir / "prices.csv"
        path.write_text(
            "symbol,price,date\n"
            "VV,260,2024-03-01\n"
            "VV,250,2024-02-01\n"
            "VTC,78,2024-02-01\n"
        )

        prices = load_prices(path)

        assert prices["VV"] == Decimal("260")
        assert prices["VTC"] == Decimal("78")

    def test_missing_price(self, temp_output_dir):
        path = temp_output_dir / "prices.csv"
        path.write_text("symbol,price\nVV,\n")
        with pytest.raises(DataLoadError, match="numeric price"):
            load_prices(path)


class TestSaveResults:
    """Tests for saving orders and targets."""

    @pytest.fixture
    def result(self, catalog, sample_transactions, all_accounts_config, all_prices):
        return run_rebalance(sample_transactions, all_accounts_config, catalog, prices=all_prices)

    def test_save_orders(self, result, temp_output_dir):
        path = save_orders(result, temp_output_dir / "out" / "orders.csv")

        df = pd.read_csv(path, dtype={"account_id": str})
        assert list(df.columns) == ORDERS_SCHEMA.all_columns
        assert len(df) == sum(len(p.orders) for p in result.plans.values())
        brokerage = df[df["account"] == AccountKind.BROKERAGE.label]
        assert set(brokerage["account_id"]) == {"11111111"}
        assert brokerage["dollar_amount"].sum() == pytest.approx(
            float(result.plans[AccountKind.BROKERAGE].total_ordered)
        )

    def test_save_targets(self, result, temp_output_dir):
        path = save_targets(result, temp_output_dir / "targets.csv")

        df = pd.read_csv(path)
        assert list(df.columns) == TARGETS_SCHEMA.all_columns
        # One row per account and target fund
        assert len(df) == 3 * 7
        vv = df[(df["account"] == "Brokerage") & (df["symbol"] == "VV")].iloc[0]
        assert vv["current_value"] == pytest.approx(3500.0)
        assert vv["target_value"] == pytest.approx(6560 * 0.6 * 0.35)
        assert vv["purchase"] == 0.0
