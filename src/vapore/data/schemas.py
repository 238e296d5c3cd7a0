"""
Data schemas for CSV file validation.

Defines expected columns and data types for all input and output files.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    @property
    def string_columns(self) -> dict[str, type]:
        """dtype mapping that keeps text columns (e.g. account numbers) as str."""
        return {c.name: str for c in self.columns if c.dtype == "str"}

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Transaction history (input)
TRANSACTIONS_SCHEMA = FileSchema(
    name="transactions",
    description="Per-account transaction history; value is positive for purchases",
    columns=[
        ColumnSchema(name="account_id", dtype="str", required=True),
        ColumnSchema(name="trade_date", dtype="datetime64[ns]", required=True),
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="shares", dtype="float64", required=True),
        ColumnSchema(name="value", dtype="float64", required=True),
        ColumnSchema(name="transaction_type", dtype="str", required=False, nullable=True),
    ],
)

# Current prices (input)
PRICES_SCHEMA = FileSchema(
    name="prices",
    description="Current price per symbol; the latest date wins when dated",
    columns=[
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="price", dtype="float64", required=True),
        ColumnSchema(name="date", dtype="datetime64[ns]", required=False),
    ],
)

# Buy orders (output)
ORDERS_SCHEMA = FileSchema(
    name="orders",
    description="Buy orders per account",
    columns=[
        ColumnSchema(name="account", dtype="str", required=True),
        ColumnSchema(name="account_id", dtype="str", required=True),
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="dollar_amount", dtype="float64", required=True),
        ColumnSchema(name="price", dtype="float64", required=True, nullable=True),
        ColumnSchema(name="approx_shares", dtype="float64", required=True, nullable=True),
    ],
)

# Targets (output)
TARGETS_SCHEMA = FileSchema(
    name="targets",
    description="Current value vs target per account and symbol",
    columns=[
        ColumnSchema(name="account", dtype="str", required=True),
        ColumnSchema(name="account_id", dtype="str", required=True),
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="current_value", dtype="float64", required=True),
        ColumnSchema(name="target_value", dtype="float64", required=True),
        ColumnSchema(name="purchase", dtype="float64", required=True),
    ],
)
