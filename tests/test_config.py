"""
Tests for configuration loading and command-line overrides.
"""

from decimal import Decimal

import pytest

from vapore.config import (
    apply_overrides,
    load_fund_catalog,
    load_rebalance_config,
    write_config,
)
from vapore.errors import ConfigurationError, InvalidSplitError, NegativeCashError
from vapore.models import AccountKind, AssetClass, RebalanceConfig, StockBondSplit


FULL_CONFIG = """\
accounts:
  brokerage:
    account_id: "11111111"
    cash_addition: 1000
    split:
      stock: 0.7
      bond: 0.3
  roth_ira:
    account_id: "22222222"
    cash_addition: 500.50
deploy_settlement_cash: false
output_dir: reports
"""


def _write(path, text):
    path.write_text(text)
    return path


class TestLoadRebalanceConfig:
    """Tests for load_rebalance_config."""

    def test_load_full_config(self, temp_output_dir):
        config = load_rebalance_config(_write(temp_output_dir / "config.yaml", FULL_CONFIG))

        brokerage = config.settings_for(AccountKind.BROKERAGE)
        assert brokerage.account_id == "11111111"
        assert brokerage.cash_addition == Decimal("1000")
        assert brokerage.split == StockBondSplit(Decimal("0.7"), Decimal("0.3"))

        roth = config.settings_for(AccountKind.ROTH_IRA)
        assert roth.cash_addition == Decimal("500.5")
        assert roth.split == StockBondSplit.default_for(AccountKind.ROTH_IRA)

        assert config.settings_for(AccountKind.TRADITIONAL_IRA) is None
        assert config.deploy_settlement_cash is False
        assert config.output_dir == "reports"

    def test_defaults(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  traditional_ira:\n    account_id: '33333333'\n",
        )
        config = load_rebalance_config(path)

        settings = config.settings_for(AccountKind.TRADITIONAL_IRA)
        assert settings.cash_addition == Decimal("0")
        assert config.deploy_settlement_cash is True
        assert config.output_dir == "output"

    def test_missing_file(self, temp_output_dir):
        with pytest.raises(ConfigurationError, match="not found"):
            load_rebalance_config(temp_output_dir / "missing.yaml")

    def test_invalid_yaml(self, temp_output_dir):
        path = _write(temp_output_dir / "config.yaml", "accounts: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_rebalance_config(path)

    def test_missing_accounts(self, temp_output_dir):
        path = _write(temp_output_dir / "config.yaml", "output_dir: reports\n")
        with pytest.raises(ConfigurationError, match="accounts"):
            load_rebalance_config(path)

    def test_unknown_account_section(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  hsa:\n    account_id: '44444444'\n",
        )
        with pytest.raises(ConfigurationError, match="Unknown account section"):
            load_rebalance_config(path)

    def test_missing_account_id(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  brokerage:\n    cash_addition: 100\n",
        )
        with pytest.raises(ConfigurationError, match="account_id"):
            load_rebalance_config(path)

    def test_negative_cash(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  brokerage:\n    account_id: '1'\n    cash_addition: -10\n",
        )
        with pytest.raises(NegativeCashError):
            load_rebalance_config(path)

    def test_invalid_cash(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  brokerage:\n    account_id: '1'\n    cash_addition: lots\n",
        )
        with pytest.raises(ConfigurationError, match="Invalid decimal"):
            load_rebalance_config(path)

    def test_split_not_summing_to_one(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  brokerage:\n    account_id: '1'\n"
            "    split:\n      stock: 0.5\n      bond: 0.6\n",
        )
        with pytest.raises(InvalidSplitError):
            load_rebalance_config(path)

    def test_non_numeric_split(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  brokerage:\n    account_id: '1'\n"
            "    split:\n      stock: lots\n      bond: 0.4\n",
        )
        with pytest.raises(InvalidSplitError, match="numeric"):
            load_rebalance_config(path)

    def test_incomplete_split(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  brokerage:\n    account_id: '1'\n    split:\n      stock: 1\n",
        )
        with pytest.raises(ConfigurationError, match="stock and bond"):
            load_rebalance_config(path)

    def test_deploy_flag_must_be_bool(self, temp_output_dir):
        path = _write(
            temp_output_dir / "config.yaml",
            "accounts:\n  brokerage:\n    account_id: '1'\ndeploy_settlement_cash: maybe\n",
        )
        with pytest.raises(ConfigurationError, match="deploy_settlement_cash"):
            load_rebalance_config(path)


class TestWriteConfig:
    """Tests for write_config."""

    def test_written_config_loads_back(self, temp_output_dir):
        original = load_rebalance_config(_write(temp_output_dir / "in.yaml", FULL_CONFIG))
        out_path = temp_output_dir / "nested" / "out.yaml"

        write_config(original, out_path)

        assert load_rebalance_config(out_path) == original


class TestApplyOverrides:
    """Tests for command-line overrides."""

    def test_account_id_adds_account(self):
        config = apply_overrides(
            None,
            account_ids={AccountKind.BROKERAGE: "11111111"},
            cash_additions={AccountKind.BROKERAGE: Decimal("250")},
        )
        settings = config.settings_for(AccountKind.BROKERAGE)
        assert settings.account_id == "11111111"
        assert settings.cash_addition == Decimal("250")
        assert settings.split == StockBondSplit.default_for(AccountKind.BROKERAGE)
        assert list(config.accounts) == [AccountKind.BROKERAGE]

    def test_overrides_replace_file_values(self, temp_output_dir):
        base = load_rebalance_config(_write(temp_output_dir / "config.yaml", FULL_CONFIG))

        config = apply_overrides(base, cash_additions={AccountKind.ROTH_IRA: Decimal("0")})

        assert config.settings_for(AccountKind.ROTH_IRA).cash_addition == Decimal("0")
        assert config.settings_for(AccountKind.BROKERAGE).cash_addition == Decimal("1000")
        assert config.deploy_settlement_cash is False

    def test_stock_percent_implies_bond(self):
        config = apply_overrides(
            None,
            account_ids={AccountKind.ROTH_IRA: "22222222"},
            stock_percents={AccountKind.ROTH_IRA: Decimal("80")},
        )
        assert config.settings_for(AccountKind.ROTH_IRA).split == StockBondSplit(
            Decimal("0.8"), Decimal("0.2")
        )

    def test_bond_percent_implies_stock(self):
        config = apply_overrides(
            None,
            account_ids={AccountKind.BROKERAGE: "1"},
            bond_percents={AccountKind.BROKERAGE: Decimal("25")},
        )
        assert config.settings_for(AccountKind.BROKERAGE).split.stock == Decimal("0.75")

    def test_inconsistent_percents(self):
        with pytest.raises(InvalidSplitError):
            apply_overrides(
                None,
                account_ids={AccountKind.BROKERAGE: "1"},
                stock_percents={AccountKind.BROKERAGE: Decimal("50")},
                bond_percents={AccountKind.BROKERAGE: Decimal("60")},
            )

    def test_override_without_account_id(self):
        with pytest.raises(ConfigurationError, match="no account id"):
            apply_overrides(None, cash_additions={AccountKind.TRADITIONAL_IRA: Decimal("100")})

    def test_no_overrides_keeps_config(self):
        assert apply_overrides(None) == RebalanceConfig(accounts={})


CATALOG_YAML = """\
funds:
  - {symbol: vti, asset_class: stock, class_weight: 0.6, risk_rank: 3, description: US total market}
  - {symbol: VXUS, asset_class: stock, class_weight: 0.4, risk_rank: 6, whole_shares: true}
  - {symbol: BND, asset_class: bond, class_weight: 1, risk_rank: 1}
settlement_symbols: [VMFXX, VMMXX]
"""


class TestLoadFundCatalog:
    """Tests for custom fund catalogs."""

    def test_load(self, temp_output_dir):
        catalog = load_fund_catalog(_write(temp_output_dir / "funds.yaml", CATALOG_YAML))

        assert catalog.all_symbols() == frozenset({"VTI", "VXUS", "BND"})
        assert catalog.class_weight("VTI") == Decimal("0.6")
        assert catalog.asset_class("BND") is AssetClass.BOND
        assert catalog.fund("VXUS").whole_shares is True
        assert catalog.describe("VTI") == "VTI: US total market"
        assert catalog.is_settlement("VMMXX")

    def test_bad_asset_class(self, temp_output_dir):
        path = _write(
            temp_output_dir / "funds.yaml",
            "funds:\n  - {symbol: GLD, asset_class: gold, class_weight: 1, risk_rank: 1}\n",
        )
        with pytest.raises(ConfigurationError, match="asset_class"):
            load_fund_catalog(path)

    def test_missing_field(self, temp_output_dir):
        path = _write(
            temp_output_dir / "funds.yaml",
            "funds:\n  - {symbol: VTI, asset_class: stock, class_weight: 1}\n",
        )
        with pytest.raises(ConfigurationError, match="risk_rank"):
            load_fund_catalog(path)

    def test_weights_validated(self, temp_output_dir):
        path = _write(
            temp_output_dir / "funds.yaml",
            "funds:\n"
            "  - {symbol: VTI, asset_class: stock, class_weight: 0.5, risk_rank: 3}\n"
            "  - {symbol: BND, asset_class: bond, class_weight: 1, risk_rank: 1}\n",
        )
        with pytest.raises(ConfigurationError, match="sum to 1"):
            load_fund_catalog(path)
