"""Use case keeping the ledger cache in sync with the mirror and the ledger.

Each load probes the connection and the mirror concurrently, then either:

* serves the cache from the mirror (warm path) and refreshes it in detached
  background tasks, or
* fetches a consolidated summary from the external ledger (cold path) and
  enriches it with settled batches of secondary collections.
"""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.application.ports.gateway import ExternalActionGatewayPort
from src.application.ports.mirror_repository import MirrorFilter
from src.application.ports.notifications import ErrorReporterPort
from src.application.use_cases.ledger_cache import (
    MIRROR_COLLECTIONS,
    LedgerCache,
)
from src.application.use_cases.read_mirror import PaginatedMirrorReader
from src.application.use_cases.retry import with_retry
from src.domain.constants import (
    ENTITY_TYPES,
    SECONDARY_FETCH_DELAY_SECONDS,
    TRANSACTION_TYPES,
)
from src.domain.errors import ExternalActionError
from src.domain.models import ConnectionState
from src.infrastructure.logging.logger import get_app_logger


ERROR_SOURCE = "ledger-sync"


@dataclass(frozen=True)
class RemoteCollection:
    """Gateway action feeding one cache collection.

    Attributes:
        action: Gateway action name.
        target: Cache attribute updated with the result, if any.
        key: Response key holding the collection; None keeps the whole map.
    """

    action: str
    target: str | None = None
    key: str | None = None


SUMMARY_ACTION = "dashboard-summary"
CUSTOMERS_STAGE = "mirror-customers"
SUMMARY_COLLECTIONS = {
    "invoices": "invoices",
    "bills": "bills",
    "payments": "payments",
    "accounts": "accounts",
}

COLD_PATH_BATCHES = (
    (
        RemoteCollection("list-vendors", "vendors", "vendors"),
        RemoteCollection("list-estimates", "estimates", "estimates"),
        RemoteCollection("get-company-info", "company_info"),
        RemoteCollection("list-items", "items", "items"),
    ),
    (
        RemoteCollection(
            "list-purchase-orders",
            "purchase_orders",
            "purchaseOrders",
        ),
        RemoteCollection("list-credit-memos", "credit_memos", "creditMemos"),
        RemoteCollection("list-employees", "employees", "employees"),
        RemoteCollection(
            "list-time-activities",
            "time_activities",
            "timeActivities",
        ),
    ),
    (
        RemoteCollection("sync-customers"),
        RemoteCollection("sync-invoices"),
    ),
)

SECONDARY_COLLECTIONS = (
    RemoteCollection("list-employees", "employees", "employees"),
    RemoteCollection(
        "list-time-activities",
        "time_activities",
        "timeActivities",
    ),
    RemoteCollection("get-company-info", "company_info"),
)


class LoadPath(str, Enum):
    """Which path a load took."""

    WARM = "warm"
    COLD = "cold"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class LoadOutcome:
    """Result of one load cycle.

    Attributes:
        path: Path taken by the load.
        counts: Cached record counts per collection after the load.
        failed_actions: Settled calls that failed during the load.
    """

    path: LoadPath
    counts: dict[str, int] = field(default_factory=dict)
    failed_actions: tuple[str, ...] = ()


class SyncLedgerUseCase:
    """Load the ledger cache from the mirror or the external ledger."""

    def __init__(
        self,
        gateway: ExternalActionGatewayPort,
        reader: PaginatedMirrorReader,
        cache: LedgerCache,
        error_reporter: ErrorReporterPort,
        logger=None,
        secondary_delay: float = SECONDARY_FETCH_DELAY_SECONDS,
        retry_attempts: int = 2,
        retry_base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the use case.

        Args:
            gateway: Port invoking external ledger actions.
            reader: Paginated reader over the local mirror.
            cache: Cache instance updated by every load.
            error_reporter: Collaborator receiving terminal incidents.
            logger: Optional logger compatible with logging.Logger-like API.
            secondary_delay: Pause between staggered secondary fetches.
            retry_attempts: Retries for each secondary fetch.
            retry_base_delay: First retry delay for secondary fetches.
            sleep: Awaitable sleep, injectable for tests.
        """
        self._gateway = gateway
        self._reader = reader
        self._cache = cache
        self._error_reporter = error_reporter
        self._logger = logger or get_app_logger()
        self._secondary_delay = secondary_delay
        self._retry_attempts = retry_attempts
        self._retry_base_delay = retry_base_delay
        self._sleep = sleep
        self._connection_state = ConnectionState.UNKNOWN
        self._background: set[asyncio.Task] = set()

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection_state

    @property
    def background_tasks(self) -> frozenset[asyncio.Task]:
        return frozenset(self._background)

    async def check_connection(self) -> bool:
        """Refresh the connection state from the external ledger.

        Returns:
            bool: True when the ledger reports a live connection.
        """
        try:
            result = await self._gateway.invoke("check-status")
        except Exception as exc:
            self._logger.warning(f"Ledger connection check failed: {exc}")
            self._connection_state = ConnectionState.DISCONNECTED
            return False
        connected = result.get("status") == "connected"
        self._connection_state = (
            ConnectionState.CONNECTED
            if connected
            else ConnectionState.DISCONNECTED
        )
        return connected

    def warm_up(self) -> asyncio.Task:
        """Schedule the first connection check in the background."""
        return self._spawn(self.check_connection(), "connection-warm-up")

    async def load(self) -> LoadOutcome:
        """Run one load cycle.

        Returns:
            LoadOutcome: Path taken and resulting cache counts.

        Raises:
            Exception: Any non-settled failure; the cache keeps its last
            good state for the collections not yet applied.
        """
        stage = "probe"
        try:
            connected, row_count = await asyncio.gather(
                self.check_connection(),
                self._reader.count_rows(),
                return_exceptions=True,
            )
            mirror_ready = self._mirror_has_rows(row_count)

            if mirror_ready:
                stage = "mirror"
                await self._load_from_mirror()
                if connected is True:
                    self._spawn(
                        self._refresh_incremental(),
                        "incremental-refresh",
                    )
                    self._spawn(
                        self._fetch_secondary_staggered(),
                        "secondary-fetch",
                    )
                else:
                    self._logger.warning(
                        "Ledger not connected; serving mirror without refresh"
                    )
                self._logger.info(
                    f"Loaded ledger cache from mirror ({row_count} rows)"
                )
                return LoadOutcome(LoadPath.WARM, self._cache.counts())

            if connected is not True:
                self._logger.warning(
                    "Mirror is empty and the ledger is not connected; "
                    "nothing to load"
                )
                return LoadOutcome(LoadPath.DISCONNECTED, self._cache.counts())

            stage = SUMMARY_ACTION
            failed = await self._load_from_ledger()
            stage = CUSTOMERS_STAGE
            await self._load_customers_from_mirror()
            self._logger.info("Loaded ledger cache from external summary")
            return LoadOutcome(LoadPath.COLD, self._cache.counts(), failed)
        except Exception as exc:
            self._report_terminal(stage, exc)
            raise

    async def sync_entity(self, entity: str) -> dict[str, Any]:
        """Run the single-entity sync action.

        Args:
            entity: Entity name, e.g. ``customers`` or ``invoices``.

        Returns:
            dict[str, Any]: Gateway response (``synced`` count included).
        """
        action = f"sync-{entity}"
        try:
            result = await self._gateway.invoke(action)
        except Exception as exc:
            self._report_terminal(action, exc)
            raise
        self._logger.info(
            f"{action} updated {result.get('synced', 0)} records"
        )
        return result

    async def full_sync(self) -> LoadOutcome:
        """Backfill the mirror from the ledger, then reload the cache."""
        try:
            await self._gateway.invoke("backfill")
        except Exception as exc:
            self._report_terminal("backfill", exc)
            raise
        return await self.load()

    async def wait_background(self) -> None:
        """Wait for every detached refresh task to finish."""
        while self._background:
            await asyncio.gather(
                *list(self._background),
                return_exceptions=True,
            )

    def cancel_background(self) -> None:
        """Cancel every detached refresh task."""
        for task in list(self._background):
            task.cancel()

    def _mirror_has_rows(self, row_count: Any) -> bool:
        if isinstance(row_count, BaseException):
            self._logger.warning(
                f"Mirror probe failed, falling back to the ledger: {row_count}"
            )
            return False
        return bool(row_count)

    async def _load_from_mirror(self) -> None:
        types = TRANSACTION_TYPES + ENTITY_TYPES
        results = await asyncio.gather(
            *(
                self._reader.read_all(MirrorFilter(entity_type=entity_type))
                for entity_type in types
            )
        )
        self._cache.apply(
            **{
                MIRROR_COLLECTIONS[entity_type]: records
                for entity_type, records in zip(types, results)
            }
        )

    async def _load_from_ledger(self) -> tuple[str, ...]:
        summary = await self._gateway.invoke(SUMMARY_ACTION)
        self._cache.apply(
            **{
                target: list(summary.get(key) or [])
                for key, target in SUMMARY_COLLECTIONS.items()
            }
        )

        failed: list[str] = []
        for batch in COLD_PATH_BATCHES:
            failed.extend(await self._settle(batch))

        return tuple(failed)

    async def _load_customers_from_mirror(self) -> None:
        customers = await self._reader.read_all(
            MirrorFilter(entity_type="Customer")
        )
        self._cache.apply(customers=customers)

    async def _settle(
        self,
        batch: tuple[RemoteCollection, ...],
    ) -> list[str]:
        """Run a batch of calls independently and apply the successes."""
        results = await asyncio.gather(
            *(self._gateway.invoke(call.action) for call in batch),
            return_exceptions=True,
        )
        failed = []
        for call, result in zip(batch, results):
            if isinstance(result, BaseException):
                self._logger.warning(f"{call.action} failed: {result}")
                failed.append(call.action)
                continue
            if call.target is None:
                self._logger.info(
                    f"{call.action} updated {result.get('synced', 0)} records"
                )
                continue
            self._apply_remote(call, result)
        return failed

    def _apply_remote(
        self,
        call: RemoteCollection,
        result: dict[str, Any],
    ) -> None:
        if call.key is None:
            self._cache.apply(**{call.target: result})
            return
        self._cache.apply(**{call.target: list(result.get(call.key) or [])})

    async def _refresh_incremental(self) -> None:
        result = await self._gateway.invoke("incremental")
        self._logger.info(
            f"Incremental sync updated {result.get('synced', 0)} records"
        )
        await self._load_from_mirror()

    async def _fetch_secondary_staggered(self) -> None:
        for index, call in enumerate(SECONDARY_COLLECTIONS):
            if index:
                await self._sleep(self._secondary_delay)
            try:
                result = await with_retry(
                    lambda action=call.action: self._gateway.invoke(action),
                    max_attempts=self._retry_attempts,
                    base_delay=self._retry_base_delay,
                    sleep=self._sleep,
                    logger=self._logger,
                    label=call.action,
                )
            except Exception as exc:
                self._logger.warning(
                    f"Skipping {call.action} after retries: {exc}"
                )
                continue
            self._apply_remote(call, result)

    def _spawn(self, coro: Coroutine, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            self._logger.info(f"Background task {task.get_name()} cancelled")
            return
        exc = task.exception()
        if exc is None:
            return
        self._logger.error(
            f"Background task {task.get_name()} failed: {exc}"
        )
        self._error_reporter.report(
            ERROR_SOURCE,
            f"Background {task.get_name()} failed: {exc}",
        )

    def _report_terminal(self, stage: str, exc: Exception) -> None:
        action = exc.action if isinstance(exc, ExternalActionError) else stage
        self._logger.error(f"Ledger load failed at {action}: {exc}")
        self._error_reporter.report(
            ERROR_SOURCE,
            f"Ledger load failed at {action}: {exc}",
        )


__all__ = [
    "SyncLedgerUseCase",
    "LoadOutcome",
    "LoadPath",
    "RemoteCollection",
    "COLD_PATH_BATCHES",
    "SECONDARY_COLLECTIONS",
]
