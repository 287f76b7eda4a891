"""Composition root for wiring infrastructure adapters."""

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.gateway import ExternalActionGatewayPort
from src.application.ports.notifications import ErrorReporterPort, NotifierPort
from src.application.use_cases.ledger_cache import LedgerCache
from src.application.use_cases.ledger_data import LedgerDataFacade
from src.application.use_cases.posting_gate import PostingGate
from src.application.use_cases.read_mirror import PaginatedMirrorReader
from src.application.use_cases.reconcile_ledger import ReconcileLedgerUseCase
from src.application.use_cases.sync_ledger import SyncLedgerUseCase
from src.infrastructure.db import SqlAlchemyDatabaseEngineAdapter
from src.infrastructure.external_gateway import HttpxExternalActionGateway
from src.infrastructure.logging.logger import get_app_logger
from src.infrastructure.mirror_repository import SqlAlchemyMirrorRepository
from src.infrastructure.notifications import (
    LoggingErrorReporter,
    LoggingNotifier,
)
from src.infrastructure.reconciliation_repository import (
    SqlAlchemyTrialBalanceRepository,
)
from src.infrastructure.settings import LedgerSettings


def build_database_adapter() -> DatabaseEnginePort:
    """Return the database adapter instance."""
    return SqlAlchemyDatabaseEngineAdapter()


def build_mirror_repository(
    db_port: DatabaseEnginePort | None = None,
) -> SqlAlchemyMirrorRepository:
    """Return the mirror repository with its tables in place."""
    resolved_db = db_port or build_database_adapter()
    repository = SqlAlchemyMirrorRepository(resolved_db)
    repository.prepare_mirror()
    return repository


def build_trial_balance_repository(
    db_port: DatabaseEnginePort | None = None,
) -> SqlAlchemyTrialBalanceRepository:
    """Return the trial-balance check repository."""
    resolved_db = db_port or build_database_adapter()
    repository = SqlAlchemyTrialBalanceRepository(resolved_db)
    repository.prepare_checks()
    return repository


def build_gateway(
    settings: LedgerSettings | None = None,
) -> HttpxExternalActionGateway:
    """Return the HTTP gateway configured from settings."""
    resolved = settings or LedgerSettings.from_env()
    if not resolved.gateway_url:
        raise RuntimeError("Missing environment variable: LEDGER_GATEWAY_URL")
    return HttpxExternalActionGateway(
        resolved.gateway_url,
        token=resolved.gateway_token,
        timeout=resolved.gateway_timeout,
        logger=get_app_logger(),
    )


def build_ledger_facade(
    db_port: DatabaseEnginePort | None = None,
    gateway: ExternalActionGatewayPort | None = None,
    settings: LedgerSettings | None = None,
    error_reporter: ErrorReporterPort | None = None,
    notifier: NotifierPort | None = None,
) -> LedgerDataFacade:
    """Return a fully wired ledger data facade.

    Args:
        db_port: Optional database adapter; defaults to the env-configured one.
        gateway: Optional gateway; defaults to the HTTP gateway.
        settings: Optional settings; defaults to ``LedgerSettings.from_env``.
        error_reporter: Optional incident reporter.
        notifier: Optional user-facing notifier.

    Returns:
        LedgerDataFacade: Facade with its own cache and use cases.
    """
    resolved_settings = settings or LedgerSettings.from_env()
    resolved_db = db_port or build_database_adapter()
    resolved_gateway = gateway or build_gateway(resolved_settings)
    reporter = error_reporter or LoggingErrorReporter()
    logger = get_app_logger()

    cache = LedgerCache()
    reader = PaginatedMirrorReader(
        build_mirror_repository(resolved_db),
        page_size=resolved_settings.page_size,
        logger=logger,
    )
    sync = SyncLedgerUseCase(
        resolved_gateway,
        reader,
        cache,
        reporter,
        logger=logger,
        secondary_delay=resolved_settings.secondary_delay,
    )
    reconciliation = ReconcileLedgerUseCase(
        resolved_gateway,
        build_trial_balance_repository(resolved_db),
        error_reporter=reporter,
        logger=logger,
        tolerance=resolved_settings.tolerance,
    )
    gate = PostingGate(reconciliation, reporter, logger=logger)
    return LedgerDataFacade(
        cache,
        sync,
        reconciliation,
        gate,
        resolved_gateway,
        notifier or LoggingNotifier(),
        logger=logger,
    )


__all__ = [
    "build_database_adapter",
    "build_mirror_repository",
    "build_trial_balance_repository",
    "build_gateway",
    "build_ledger_facade",
]
