"""Read/write facade over the ledger cache, sync, reconciliation and gate.

Presentation collaborators only talk to ``LedgerDataFacade``: they read the
cached collections and aggregates, trigger loads and syncs, and call the
mutation entry points. Posting mutations pass through the posting gate
before anything is sent to the external ledger.
"""

import asyncio
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any

from src.application.ports.gateway import ExternalActionGatewayPort
from src.application.ports.notifications import NotifierPort
from src.application.use_cases.ledger_cache import LedgerCache
from src.application.use_cases.posting_gate import PostingGate
from src.application.use_cases.reconcile_ledger import ReconcileLedgerUseCase
from src.application.use_cases.sync_ledger import (
    LoadOutcome,
    SyncLedgerUseCase,
)
from src.domain.errors import PostingBlockedError
from src.domain.models import (
    ConnectionState,
    NormalizedRecord,
    TrialBalanceCheck,
)
from src.domain.services.finance import overdue_records, total_open_balance
from src.domain.services.reconciliation import format_amount
from src.infrastructure.logging.logger import get_app_logger


UPDATE_INVOICE_ACTION = "update-invoice"
SEND_INVOICE_ACTION = "send-invoice"
VOID_INVOICE_ACTION = "void-invoice"
CORRECTION_ENTRY_ACTION = "create-payroll-correction"


def _doc_number(result: dict[str, Any]) -> str:
    return f"Doc #{result.get('docNumber') or 'N/A'}"


class LedgerDataFacade:
    """Aggregate read/write surface of the ledger mirror."""

    def __init__(
        self,
        cache: LedgerCache,
        sync: SyncLedgerUseCase,
        reconciliation: ReconcileLedgerUseCase,
        gate: PostingGate,
        gateway: ExternalActionGatewayPort,
        notifier: NotifierPort,
        logger=None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the facade.

        Args:
            cache: Cache shared with the sync use case.
            sync: Use case loading the cache.
            reconciliation: Use case producing trial-balance checks.
            gate: Posting gate consulted by posting mutations.
            gateway: Port invoking external ledger actions.
            notifier: Collaborator receiving user-facing messages.
            logger: Optional logger compatible with logging.Logger-like API.
            today: Reference date provider for overdue computations.
        """
        self._cache = cache
        self._sync = sync
        self._reconciliation = reconciliation
        self._gate = gate
        self._gateway = gateway
        self._notifier = notifier
        self._logger = logger or get_app_logger()
        self._today = today

    # Cached collections

    @property
    def cache(self) -> LedgerCache:
        return self._cache

    @property
    def invoices(self) -> list[NormalizedRecord]:
        return self._cache.invoices

    @property
    def bills(self) -> list[NormalizedRecord]:
        return self._cache.bills

    @property
    def payments(self) -> list[NormalizedRecord]:
        return self._cache.payments

    @property
    def estimates(self) -> list[NormalizedRecord]:
        return self._cache.estimates

    @property
    def purchase_orders(self) -> list[NormalizedRecord]:
        return self._cache.purchase_orders

    @property
    def credit_memos(self) -> list[NormalizedRecord]:
        return self._cache.credit_memos

    @property
    def accounts(self) -> list[NormalizedRecord]:
        return self._cache.accounts

    @property
    def customers(self) -> list[NormalizedRecord]:
        return self._cache.customers

    @property
    def vendors(self) -> list[NormalizedRecord]:
        return self._cache.vendors

    @property
    def items(self) -> list[NormalizedRecord]:
        return self._cache.items

    @property
    def employees(self) -> list[NormalizedRecord]:
        return self._cache.employees

    @property
    def time_activities(self) -> list[NormalizedRecord]:
        return self._cache.time_activities

    @property
    def company_info(self) -> dict[str, Any] | None:
        return self._cache.company_info

    # Aggregates

    @property
    def total_receivable(self) -> Decimal:
        return total_open_balance(self._cache.invoices)

    @property
    def total_payable(self) -> Decimal:
        return total_open_balance(self._cache.bills)

    @property
    def overdue_invoices(self) -> list[NormalizedRecord]:
        return overdue_records(self._cache.invoices, self._today())

    @property
    def overdue_bills(self) -> list[NormalizedRecord]:
        return overdue_records(self._cache.bills, self._today())

    # State

    @property
    def connection_state(self) -> ConnectionState:
        return self._sync.connection_state

    @property
    def posting_gate(self) -> PostingGate:
        return self._gate

    @property
    def last_check(self) -> TrialBalanceCheck | None:
        return self._reconciliation.current_check

    # Lifecycle

    def start(self) -> asyncio.Task:
        """Eagerly load the latest check and probe the connection.

        Returns:
            asyncio.Task: The task loading the latest trial-balance check.
        """
        self._sync.warm_up()
        return self._reconciliation.start()

    async def ensure_check_loaded(self) -> TrialBalanceCheck | None:
        """Wait until the latest persisted check has been loaded."""
        return await self._reconciliation.ensure_loaded()

    async def wait_background(self) -> None:
        """Wait for the detached refresh tasks of previous loads."""
        await self._sync.wait_background()

    async def aclose(self) -> None:
        """Cancel and drain the detached refresh tasks."""
        self._sync.cancel_background()
        await self._sync.wait_background()

    # Reads and syncs

    async def check_connection(self) -> bool:
        return await self._sync.check_connection()

    async def load_all(self) -> LoadOutcome:
        """Load the cache through the sync orchestrator.

        Raises:
            Exception: Terminal load failures, after a failure notification.
        """
        try:
            return await self._sync.load()
        except Exception as exc:
            self._notifier.failure("Error loading data", str(exc))
            raise

    async def full_sync(self) -> LoadOutcome:
        """Backfill the mirror from the ledger, then reload the cache."""
        try:
            outcome = await self._sync.full_sync()
        except Exception as exc:
            self._notifier.failure("Full sync failed", str(exc))
            raise
        self._notifier.success(
            "Full sync complete",
            f"{sum(outcome.counts.values())} records loaded",
        )
        return outcome

    async def sync_entity(self, entity: str) -> dict[str, Any]:
        """Sync one entity type, then reload the cache."""
        try:
            result = await self._sync.sync_entity(entity)
        except Exception as exc:
            self._notifier.failure("Sync failed", str(exc))
            raise
        self._notifier.success(
            f"Synced {entity}",
            f"{result.get('synced', 0)} records updated",
        )
        await self._reload()
        return result

    async def reconcile(self) -> TrialBalanceCheck:
        """Run a trial-balance check and report its outcome."""
        try:
            check = await self._reconciliation.reconcile()
        except Exception as exc:
            self._notifier.failure("Reconciliation failed", str(exc))
            raise
        if check.is_balanced:
            self._notifier.success(
                "Trial balance balanced",
                f"Difference {format_amount(check.total_diff)}",
            )
        else:
            self._notifier.failure(
                "Trial balance mismatch",
                f"Posting blocked until resolved "
                f"(difference {format_amount(check.total_diff)})",
            )
        return check

    # Mutations

    async def create_entity(
        self,
        action: str,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        """Create a ledger document through a gated action."""
        return await self._mutate(
            action,
            body,
            gated=True,
            title="Created successfully",
            describe=_doc_number,
        )

    async def update_invoice(
        self,
        invoice_id: str,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        """Update an invoice through a gated action."""
        return await self._mutate(
            UPDATE_INVOICE_ACTION,
            {"invoiceId": invoice_id, **updates},
            gated=True,
            title="Invoice updated",
            describe=_doc_number,
        )

    async def create_correction_entry(
        self,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        """Post a correction journal entry through a gated action."""
        return await self._mutate(
            CORRECTION_ENTRY_ACTION,
            body,
            gated=True,
            title="Correction entry created",
            describe=lambda result: (
                f"Journal Entry #{result.get('docNumber') or 'N/A'}"
            ),
        )

    async def send_invoice(
        self,
        invoice_id: str,
        email: str | None = None,
    ) -> dict[str, Any]:
        """Email an invoice. Not gated: it posts no new amounts."""
        body: dict[str, Any] = {"invoiceId": invoice_id}
        if email:
            body["email"] = email
        return await self._mutate(
            SEND_INVOICE_ACTION,
            body,
            gated=False,
            title="Invoice sent",
            describe=lambda result: (
                f"Invoice emailed to {email}" if email else "Invoice emailed"
            ),
        )

    async def void_invoice(
        self,
        invoice_id: str,
        sync_token: str,
    ) -> dict[str, Any]:
        """Void an invoice. Not gated: it posts no new amounts."""
        return await self._mutate(
            VOID_INVOICE_ACTION,
            {"invoiceId": invoice_id, "syncToken": sync_token},
            gated=False,
            title="Invoice voided",
            describe=lambda result: None,
        )

    async def _mutate(
        self,
        action: str,
        body: dict[str, Any],
        *,
        gated: bool,
        title: str,
        describe: Callable[[dict[str, Any]], str | None],
    ) -> dict[str, Any]:
        if gated:
            try:
                # The persisted check must be current before the gate is read.
                await self._reconciliation.ensure_loaded()
                self._gate.assert_open(action)
            except PostingBlockedError as exc:
                self._notifier.failure("Posting blocked", str(exc))
                raise
            except Exception as exc:
                self._logger.error(
                    f"{action} aborted, trial balance check unavailable: "
                    f"{exc}"
                )
                self._notifier.failure(f"{action} failed", str(exc))
                raise
        try:
            result = await self._gateway.invoke(action, body)
        except Exception as exc:
            self._logger.error(f"{action} failed: {exc}")
            self._notifier.failure(f"{action} failed", str(exc))
            raise
        self._logger.info(f"{action} succeeded")
        await self._reload()
        self._notifier.success(title, describe(result))
        return result

    async def _reload(self) -> None:
        try:
            await self._sync.load()
        except Exception as exc:
            self._notifier.failure("Error loading data", str(exc))


__all__ = [
    "LedgerDataFacade",
    "UPDATE_INVOICE_ACTION",
    "SEND_INVOICE_ACTION",
    "VOID_INVOICE_ACTION",
    "CORRECTION_ENTRY_ACTION",
]
