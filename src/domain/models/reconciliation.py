"""Domain models for trial-balance reconciliation."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class AccountDifference:
    """Per-account comparison between the external ledger and the mirror."""

    account: str
    external_amount: Decimal
    mirror_amount: Decimal
    difference: Decimal


@dataclass(frozen=True)
class TrialBalanceCheck:
    """Result of a trial-balance comparison.

    Attributes:
        is_balanced: Whether the totals agree within tolerance.
        total_diff: Absolute difference of the overall totals.
        external_total: Trial-balance total reported by the external ledger.
        mirror_total: Trial-balance total computed from the mirror.
        ar_diff: Accounts-receivable difference.
        ap_diff: Accounts-payable difference.
        accounts: Ordered per-account differences.
        checked_at: Time the check was taken.
    """

    is_balanced: bool
    total_diff: Decimal
    external_total: Decimal
    mirror_total: Decimal
    checked_at: datetime
    ar_diff: Decimal | None = None
    ap_diff: Decimal | None = None
    accounts: tuple[AccountDifference, ...] = field(default_factory=tuple)


class ConnectionState(str, Enum):
    """Connection status of the external ledger; never persisted."""

    UNKNOWN = "unknown"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


__all__ = ["AccountDifference", "TrialBalanceCheck", "ConnectionState"]
