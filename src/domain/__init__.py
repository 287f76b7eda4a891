"""Domain package for ledger mirror rules and core models."""

from .constants import (
    DEFAULT_PAGE_SIZE,
    ENTITY_TYPES,
    RECONCILE_TOLERANCE,
    TRANSACTION_TYPES,
)
from .errors import (
    ExternalActionError,
    LedgerMirrorError,
    PostingBlockedError,
    ReconciliationPersistenceError,
)
from .models import (
    AccountDifference,
    ConnectionState,
    MirrorEntity,
    MirrorRow,
    NormalizedRecord,
    Snapshot,
    Synthesized,
    TrialBalanceCheck,
)
from .policies import is_within_tolerance
from .services import (
    build_trial_balance_check,
    classify_row,
    describe_imbalance,
    normalize_entity,
    normalize_row,
    overdue_records,
    total_open_balance,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ENTITY_TYPES",
    "RECONCILE_TOLERANCE",
    "TRANSACTION_TYPES",
    "ExternalActionError",
    "LedgerMirrorError",
    "PostingBlockedError",
    "ReconciliationPersistenceError",
    "AccountDifference",
    "ConnectionState",
    "MirrorEntity",
    "MirrorRow",
    "NormalizedRecord",
    "Snapshot",
    "Synthesized",
    "TrialBalanceCheck",
    "is_within_tolerance",
    "build_trial_balance_check",
    "classify_row",
    "describe_imbalance",
    "normalize_entity",
    "normalize_row",
    "overdue_records",
    "total_open_balance",
]
