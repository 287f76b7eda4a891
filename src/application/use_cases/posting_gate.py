"""Guard blocking ledger postings while the trial balance disagrees."""

from src.application.ports.notifications import ErrorReporterPort
from src.application.use_cases.reconcile_ledger import ReconcileLedgerUseCase
from src.domain.errors import PostingBlockedError
from src.domain.models import TrialBalanceCheck
from src.domain.services.reconciliation import (
    describe_imbalance,
    format_amount,
)
from src.infrastructure.logging.logger import get_app_logger


ERROR_SOURCE = "posting-gate"


class PostingGate:
    """Posting gate derived from the current trial-balance check.

    The gate is closed only when a current check exists and is unbalanced.
    Without any check the gate is open.
    """

    def __init__(
        self,
        reconciliation: ReconcileLedgerUseCase,
        error_reporter: ErrorReporterPort,
        logger=None,
    ) -> None:
        """Initialize the gate.

        Args:
            reconciliation: Use case holding the current check.
            error_reporter: Collaborator alerted on blocked postings.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._reconciliation = reconciliation
        self._error_reporter = error_reporter
        self._logger = logger or get_app_logger()

    @property
    def check(self) -> TrialBalanceCheck | None:
        return self._reconciliation.current_check

    @property
    def is_closed(self) -> bool:
        check = self.check
        return check is not None and not check.is_balanced

    @property
    def is_open(self) -> bool:
        return not self.is_closed

    def assert_open(self, action: str | None = None) -> None:
        """Raise when the gate is closed.

        Args:
            action: Mutation being attempted, used for reporting.

        Raises:
            PostingBlockedError: With the total and per-account differences.
        """
        check = self.check
        if check is None or check.is_balanced:
            return
        message = describe_imbalance(check)
        label = action or "posting"
        self._logger.warning(
            f"Blocked {label}: trial balance diff "
            f"{format_amount(check.total_diff)}"
        )
        self._error_reporter.report(
            ERROR_SOURCE,
            f"Blocked {label}: trial balance out by "
            f"{format_amount(check.total_diff)}",
        )
        raise PostingBlockedError(message, total_diff=check.total_diff)


__all__ = ["PostingGate"]
