"""Domain services package."""

from .finance import overdue_records, total_open_balance
from .normalization import (
    classify_row,
    normalize_entity,
    normalize_row,
    to_record,
)
from .reconciliation import (
    build_account_differences,
    build_trial_balance_check,
    describe_imbalance,
    format_amount,
)

__all__ = [
    "overdue_records",
    "total_open_balance",
    "classify_row",
    "normalize_entity",
    "normalize_row",
    "to_record",
    "build_account_differences",
    "build_trial_balance_check",
    "describe_imbalance",
    "format_amount",
]
