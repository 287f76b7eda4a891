"""Use case comparing the mirror with the external ledger trial balance."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal

from src.application.ports.gateway import ExternalActionGatewayPort
from src.application.ports.notifications import ErrorReporterPort
from src.application.ports.reconciliation_repository import (
    TrialBalanceRepositoryPort,
)
from src.domain.constants import RECONCILE_TOLERANCE
from src.domain.errors import ReconciliationPersistenceError
from src.domain.models import TrialBalanceCheck
from src.domain.services.reconciliation import (
    build_trial_balance_check,
    format_amount,
)
from src.infrastructure.logging.logger import get_app_logger


RECONCILE_ACTION = "reconcile"
ERROR_SOURCE = "ledger-reconcile"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReconcileLedgerUseCase:
    """Run, persist and reload trial-balance checks.

    ``reconcile`` is the only write path for checks. ``start`` schedules an
    eager load of the latest persisted check so the posting gate is correct
    before any ledger data is loaded in the current process.
    """

    def __init__(
        self,
        gateway: ExternalActionGatewayPort,
        repository: TrialBalanceRepositoryPort,
        error_reporter: ErrorReporterPort | None = None,
        logger=None,
        tolerance: Decimal = RECONCILE_TOLERANCE,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the use case.

        Args:
            gateway: Port invoking the external reconcile action.
            repository: Storage for trial-balance checks.
            error_reporter: Optional collaborator alerted on mismatches.
            logger: Optional logger compatible with logging.Logger-like API.
            tolerance: Largest absolute difference treated as balanced.
            clock: Timestamp source for new checks.
        """
        self._gateway = gateway
        self._repository = repository
        self._error_reporter = error_reporter
        self._logger = logger or get_app_logger()
        self._tolerance = tolerance
        self._clock = clock
        self._current: TrialBalanceCheck | None = None
        self._initial_load: asyncio.Task | None = None

    @property
    def current_check(self) -> TrialBalanceCheck | None:
        return self._current

    async def reconcile(self) -> TrialBalanceCheck:
        """Run the external reconciliation and persist the result.

        Returns:
            TrialBalanceCheck: The new current check.

        Raises:
            ExternalActionError: When the reconcile action fails.
            ReconciliationPersistenceError: When the check cannot be saved;
                the current check is left unchanged.
        """
        payload = await self._gateway.invoke(RECONCILE_ACTION)
        check = build_trial_balance_check(
            payload,
            tolerance=self._tolerance,
            checked_at=self._clock(),
        )
        try:
            await asyncio.to_thread(self._repository.save_check, check)
        except Exception as exc:
            self._logger.error(f"Failed to persist trial balance check: {exc}")
            raise ReconciliationPersistenceError(
                f"Failed to persist trial balance check: {exc}"
            ) from exc

        self._current = check
        if check.is_balanced:
            self._logger.info(
                "Trial balance check passed "
                f"(diff={format_amount(check.total_diff)})"
            )
        else:
            message = (
                "Trial balance mismatch: "
                f"{format_amount(check.total_diff)} "
                f"(external={format_amount(check.external_total)}, "
                f"mirror={format_amount(check.mirror_total)})"
            )
            self._logger.warning(message)
            if self._error_reporter is not None:
                self._error_reporter.report(ERROR_SOURCE, message)
        return check

    async def load_latest(self) -> TrialBalanceCheck | None:
        """Load the newest persisted check and make it current.

        A check already produced by ``reconcile`` in this process is kept
        when it is newer than the persisted one.

        Returns:
            TrialBalanceCheck | None: The current check after loading.
        """
        latest = await asyncio.to_thread(self._repository.fetch_latest_check)
        if latest is None:
            self._logger.info("No persisted trial balance check found")
            return self._current
        current = self._current
        if current is None or latest.checked_at >= current.checked_at:
            self._current = latest
            self._logger.info(
                "Loaded trial balance check from "
                f"{latest.checked_at.isoformat()} "
                f"(balanced={latest.is_balanced})"
            )
        return self._current

    def start(self) -> asyncio.Task:
        """Schedule the eager load of the latest persisted check."""
        if self._initial_load is None:
            self._initial_load = asyncio.create_task(
                self.load_latest(),
                name="load-trial-balance",
            )
        return self._initial_load

    async def ensure_loaded(self) -> TrialBalanceCheck | None:
        """Wait for the eager load, starting it if needed."""
        await self.start()
        return self._current


__all__ = ["ReconcileLedgerUseCase", "RECONCILE_ACTION"]
