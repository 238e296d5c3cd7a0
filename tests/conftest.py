"""
Pytest fixtures for the Vanguard portfolio rebalancer tests.

Provides common test data and utilities used across test modules.
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from vapore.catalog import FundCatalog
from vapore.models import (
    AccountKind,
    AccountSettings,
    AssetClass,
    Fund,
    RebalanceConfig,
    StockBondSplit,
    Transaction,
)


BROKERAGE_ID = "11111111"
ROTH_ID = "22222222"
TRADITIONAL_ID = "33333333"


def _make_settings(kind: AccountKind, account_id: str, cash="0", split=None) -> AccountSettings:
    return AccountSettings(
        kind=kind,
        account_id=account_id,
        split=split or StockBondSplit.default_for(kind),
        cash_addition=Decimal(cash),
    )


def _make_config(*settings: AccountSettings, deploy_settlement_cash: bool = True) -> RebalanceConfig:
    return RebalanceConfig(
        accounts={s.kind: s for s in settings},
        deploy_settlement_cash=deploy_settlement_cash,
    )


def _buy(account_id: str, symbol: str, shares: str, value: str, day: int = 2) -> Transaction:
    return Transaction(
        account_id=account_id,
        trade_date=date(2024, 1, day),
        symbol=symbol,
        shares=Decimal(shares),
        value=Decimal(value),
        transaction_type="Buy",
    )


@pytest.fixture
def make_settings():
    """Factory for AccountSettings; the default split for the kind unless given."""
    return _make_settings


@pytest.fixture
def make_config():
    """Factory for a RebalanceConfig from AccountSettings."""
    return _make_config


@pytest.fixture
def buy():
    """Factory for a purchase Transaction dated in January 2024."""
    return _buy


@pytest.fixture
def catalog() -> FundCatalog:
    """The default fund catalog."""
    return FundCatalog.default()


@pytest.fixture
def small_catalog() -> FundCatalog:
    """Two stocks and one bond, easy to reason about."""
    return FundCatalog([
        Fund("AAA", AssetClass.STOCK, Decimal("0.5"), 2, "Risky stock"),
        Fund("BBB", AssetClass.STOCK, Decimal("0.5"), 1, "Safer stock"),
        Fund("CCC", AssetClass.BOND, Decimal("1"), 1, "Bond"),
    ])


@pytest.fixture
def all_prices() -> dict[str, Decimal]:
    """Current prices for every fund in the default catalog."""
    return {
        "VV": Decimal("250.00"),
        "VO": Decimal("240.00"),
        "VB": Decimal("220.00"),
        "VXUS": Decimal("60.00"),
        "VWO": Decimal("42.00"),
        "VTC": Decimal("78.00"),
        "BNDX": Decimal("49.00"),
    }


@pytest.fixture
def sample_transactions() -> dict[str, list[Transaction]]:
    """Transaction history for all three accounts."""
    return {
        BROKERAGE_ID: [
            _buy(BROKERAGE_ID, "VV", "10", "2000.00"),
            _buy(BROKERAGE_ID, "VV", "4", "1000.00", day=15),
            _buy(BROKERAGE_ID, "VTC", "20", "1560.00"),
            _buy(BROKERAGE_ID, "VMFXX", "500", "500.00"),
        ],
        ROTH_ID: [
            _buy(ROTH_ID, "VXUS", "50", "3000.00"),
        ],
        TRADITIONAL_ID: [
            _buy(TRADITIONAL_ID, "BNDX", "100", "4900.00"),
            _buy(TRADITIONAL_ID, "VV", "20", "5000.00"),
        ],
    }


@pytest.fixture
def all_accounts_config() -> RebalanceConfig:
    """All three accounts with cash additions and default splits."""
    return _make_config(
        _make_settings(AccountKind.BROKERAGE, BROKERAGE_ID, "1000"),
        _make_settings(AccountKind.ROTH_IRA, ROTH_ID, "500"),
        _make_settings(AccountKind.TRADITIONAL_IRA, TRADITIONAL_ID, "0"),
    )


@pytest.fixture
def temp_output_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


VANGUARD_DOWNLOAD = """\
Account Number,Investment Name,Symbol,Shares,Share Price,Total Value,
11111111,VANGUARD FEDERAL MONEY MARKET INVESTOR CL,VMFXX,250.5,1,250.5,
11111111,VANGUARD LARGE-CAP ETF,VV,10,255.5,2555,
11111111,VANGUARD TOTAL CORPORATE BOND ETF,VTC,20,77.25,1545,
22222222,VANGUARD TOTAL INTL STOCK INDEX ETF,VXUS,50,61,3050,


Account Number,Trade Date,Settlement Date,Transaction Type,Transaction Description,Investment Name,Symbol,Shares,Share Price,Principal Amount,Commissions and Fees,Net Amount,Accrued Interest,Account Type,
11111111,2024-03-01,2024-03-04,Buy,Buy,VANGUARD LARGE-CAP ETF,VV,10,250,-2500,0,-2500,0,CASH,
11111111,2024-03-01,2024-03-04,Sweep out,Sweep out,VANGUARD FEDERAL MONEY MARKET INVESTOR CL,VMFXX,-2500,1,2500,0,2500,0,CASH,
11111111,2024-02-15,2024-02-15,Funds Received,Funds Received,CASH,-,0,1,0,0,3000,0,CASH,
22222222,2024-02-20,2024-02-22,Buy,Buy,VANGUARD TOTAL INTL STOCK INDEX ETF,VXUS,50,60,-3000,0,-3000,0,CASH,
"""


@pytest.fixture
def vanguard_csv(temp_output_dir: Path) -> Path:
    """A Vanguard download file with a holdings and a transaction section."""
    path = temp_output_dir / "OfxDownload.csv"
    path.write_text(VANGUARD_DOWNLOAD)
    return path
