"""Errors raised by the ledger mirror."""

from decimal import Decimal


class LedgerMirrorError(RuntimeError):
    """Base error for mirror, sync and reconciliation failures."""


class ExternalActionError(LedgerMirrorError):
    """Raised when an external ledger action fails.

    Attributes:
        action: Name of the remote action that failed.
        status_code: HTTP status code, when the failure came from a response.
    """

    def __init__(
        self,
        action: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(f"{action}: {message}")
        self.action = action
        self.message = message
        self.status_code = status_code


class PostingBlockedError(LedgerMirrorError):
    """Raised when the posting gate is closed by an unbalanced check."""

    def __init__(self, message: str, total_diff: Decimal) -> None:
        super().__init__(message)
        self.total_diff = total_diff


class ReconciliationPersistenceError(LedgerMirrorError):
    """Raised when a trial-balance check cannot be saved."""


__all__ = [
    "LedgerMirrorError",
    "ExternalActionError",
    "PostingBlockedError",
    "ReconciliationPersistenceError",
]
