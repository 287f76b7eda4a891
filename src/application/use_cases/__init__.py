"""Application use cases package."""

from .ledger_cache import LedgerCache
from .ledger_data import LedgerDataFacade
from .posting_gate import PostingGate
from .read_mirror import PaginatedMirrorReader
from .reconcile_ledger import ReconcileLedgerUseCase
from .retry import with_retry
from .sync_ledger import LoadOutcome, LoadPath, SyncLedgerUseCase

__all__ = [
    "LedgerCache",
    "LedgerDataFacade",
    "PostingGate",
    "PaginatedMirrorReader",
    "ReconcileLedgerUseCase",
    "with_retry",
    "LoadOutcome",
    "LoadPath",
    "SyncLedgerUseCase",
]
