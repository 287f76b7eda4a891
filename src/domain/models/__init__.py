"""Domain models package."""

from .mirror import (
    MirrorEntity,
    MirrorRow,
    NormalizedRecord,
    RecordSource,
    Snapshot,
    Synthesized,
)
from .reconciliation import (
    AccountDifference,
    ConnectionState,
    TrialBalanceCheck,
)

__all__ = [
    "MirrorRow",
    "MirrorEntity",
    "NormalizedRecord",
    "RecordSource",
    "Snapshot",
    "Synthesized",
    "AccountDifference",
    "ConnectionState",
    "TrialBalanceCheck",
]
