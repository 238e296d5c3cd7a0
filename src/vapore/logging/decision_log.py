"""
Append-only decision logging for the Vanguard portfolio rebalancer.

Every rebalance run records what it loaded, what it targeted and what it
ordered, so a run can be audited after the fact.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from vapore.errors import InsufficientDataError
from vapore.models import (
    AccountKind,
    ActionType,
    DecisionLogEntry,
    RebalanceConfig,
    RebalanceResult,
)


class DecisionLogger:
    """
    Append-only decision logger.

    Writes all decisions to a JSONL file for audit purposes.
    Each line is a complete JSON object representing one action.
    """

    def __init__(self, log_path: str | Path):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: DecisionLogEntry) -> None:
        """Write a decision log entry."""
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "run_id": entry.run_id,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def _log(self, action_type: ActionType, run_id: Optional[str], details: dict) -> None:
        self.log(DecisionLogEntry.create(action_type=action_type, run_id=run_id, details=details))

    def log_config_loaded(
        self,
        run_id: str,
        config: RebalanceConfig,
        config_path: Optional[str] = None,
    ) -> None:
        """
        Log the configuration a run was started with.

        Args:
            run_id: Rebalance run identifier
            config: Effective configuration (after CLI overrides)
            config_path: Path to the YAML file, if one was used
        """
        details = {
            "config_path": config_path,
            "deploy_settlement_cash": config.deploy_settlement_cash,
            "accounts": {
                kind.value: {
                    "account_id": settings.account_id,
                    "cash_addition": settings.cash_addition,
                    "split": {"stock": settings.split.stock, "bond": settings.split.bond},
                }
                for kind, settings in config.accounts.items()
            },
        }
        self._log(ActionType.CONFIG_LOADED, run_id, details)

    def log_holdings_loaded(self, run_id: str, snapshot) -> None:
        """
        Log the holdings snapshot.

        Args:
            run_id: Rebalance run identifier
            snapshot: HoldingsSnapshot built from the transaction history
        """
        details = {
            "accounts": {
                account_id: {
                    "num_positions": len(snapshot.for_account(account_id)),
                    "market_value": snapshot.market_value(account_id),
                }
                for account_id in snapshot.account_ids()
            },
            "priced_symbols": sorted(snapshot.prices),
        }
        self._log(ActionType.HOLDINGS_LOADED, run_id, details)

    def log_targets_calculated(self, run_id: str, result: RebalanceResult) -> None:
        """Log per-account totals and targets."""
        details = {
            kind.value: {
                "total_value": plan.account.total_value,
                "split": str(plan.account.split),
                "targets": {t.symbol: t.target_value for t in plan.targets},
            }
            for kind, plan in result.plans.items()
        }
        self._log(ActionType.TARGETS_CALCULATED, run_id, details)

    def log_retirement_routed(self, run_id: str, result: RebalanceResult) -> None:
        """Log the combined retirement pool and how much of it the Roth holds."""
        details = {
            "pool": {t.symbol: t.target_value for t in result.retirement_pool_targets},
            "roth_symbols": [
                t.symbol
                for t in result.plans[AccountKind.ROTH_IRA].targets
                if t.target_value > 0
            ],
        }
        self._log(ActionType.RETIREMENT_ROUTED, run_id, details)

    def log_orders_generated(self, run_id: str, result: RebalanceResult) -> None:
        """
        Log the generated buy orders.

        Args:
            run_id: Rebalance run identifier
            result: Completed rebalance result
        """
        details = {
            "total_orders_value": result.total_orders_value,
            "accounts": {
                kind.value: {
                    "available_cash": plan.available_cash,
                    "unallocated_cash": plan.unallocated_cash,
                    "orders": [
                        {
                            "symbol": o.symbol,
                            "dollar_amount": o.dollar_amount,
                            "approx_shares": o.approx_shares,
                        }
                        for o in plan.orders
                    ],
                }
                for kind, plan in result.plans.items()
            },
        }
        self._log(ActionType.ORDERS_GENERATED, run_id, details)

    def log_warnings_reported(
        self,
        run_id: str,
        warnings: list[InsufficientDataError],
    ) -> None:
        details = {
            "count": len(warnings),
            "warnings": [
                {"account": w.account, "symbol": w.symbol, "message": str(w)}
                for w in warnings
            ],
        }
        self._log(ActionType.WARNINGS_REPORTED, run_id, details)

    def read_log(self) -> list[DecisionLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of DecisionLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    DecisionLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        run_id=record.get("run_id"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_run(self, run_id: str) -> list[DecisionLogEntry]:
        """Get log entries for a specific rebalance run."""
        return [e for e in self.read_log() if e.run_id == run_id]

    def filter_by_action_type(self, action_type: ActionType) -> list[DecisionLogEntry]:
        """Get log entries of a specific action type."""
        return [e for e in self.read_log() if e.action_type == action_type]


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and date types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)


_global_logger: Optional[DecisionLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> DecisionLogger:
    """
    Get or create the global decision logger.

    Args:
        log_path: Optional path; replaces the current logger when given

    Returns:
        DecisionLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if log_path is None:
            log_path = "output/decision_log.jsonl"
        _global_logger = DecisionLogger(log_path)
    elif log_path is not None:
        _global_logger = DecisionLogger(log_path)

    return _global_logger
