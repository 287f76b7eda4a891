"""Tests for the ReconcileLedgerUseCase."""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.application.use_cases.reconcile_ledger import ReconcileLedgerUseCase
from src.domain.errors import (
    ExternalActionError,
    ReconciliationPersistenceError,
)
from src.domain.models import TrialBalanceCheck


NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


class FakeGateway:
    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls: list[str] = []

    async def invoke(self, action, body=None):
        self.calls.append(action)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class InMemoryCheckRepository:
    def __init__(self, checks=()) -> None:
        self.checks = list(checks)

    def save_check(self, check) -> None:
        self.checks.append(check)

    def fetch_latest_check(self):
        if not self.checks:
            return None
        return max(self.checks, key=lambda check: check.checked_at)


def _check(diff: str, checked_at: datetime) -> TrialBalanceCheck:
    return TrialBalanceCheck(
        is_balanced=Decimal(diff) <= Decimal("0.01"),
        total_diff=Decimal(diff),
        external_total=Decimal("100"),
        mirror_total=Decimal("100") - Decimal(diff),
        checked_at=checked_at,
    )


def test_reconcile_persists_and_sets_current_check() -> None:
    """A successful reconcile should be saved and become current."""
    gateway = FakeGateway({"qb": 100, "erp": 100, "trial_balance_diff": 0})
    repository = InMemoryCheckRepository()
    reporter = MagicMock()
    use_case = ReconcileLedgerUseCase(
        gateway,
        repository,
        error_reporter=reporter,
        logger=MagicMock(),
        clock=lambda: NOW,
    )

    check = asyncio.run(use_case.reconcile())

    assert check.is_balanced is True
    assert check.checked_at == NOW
    assert repository.checks == [check]
    assert use_case.current_check is check
    assert gateway.calls == ["reconcile"]
    reporter.report.assert_not_called()


def test_mismatch_is_reported() -> None:
    """An unbalanced check should alert the error reporter."""
    gateway = FakeGateway(
        {"qb": 1000, "erp": 984.68, "trial_balance_diff": 15.32}
    )
    reporter = MagicMock()
    use_case = ReconcileLedgerUseCase(
        gateway,
        InMemoryCheckRepository(),
        error_reporter=reporter,
        logger=MagicMock(),
        clock=lambda: NOW,
    )

    check = asyncio.run(use_case.reconcile())

    assert check.is_balanced is False
    source, message = reporter.report.call_args.args
    assert source == "ledger-reconcile"
    assert "15.32" in message


def test_persistence_failure_keeps_previous_check() -> None:
    """A failed save should raise and leave the current check untouched."""
    previous = _check("0", NOW - timedelta(days=1))
    repository = MagicMock()
    repository.fetch_latest_check.return_value = previous
    repository.save_check.side_effect = RuntimeError("disk full")
    gateway = FakeGateway({"qb": 10, "erp": 5})
    use_case = ReconcileLedgerUseCase(
        gateway,
        repository,
        logger=MagicMock(),
        clock=lambda: NOW,
    )

    async def scenario():
        await use_case.load_latest()
        with pytest.raises(ReconciliationPersistenceError):
            await use_case.reconcile()

    asyncio.run(scenario())

    assert use_case.current_check is previous


def test_gateway_failure_propagates() -> None:
    """Reconcile action failures should surface unchanged."""
    gateway = FakeGateway(ExternalActionError("reconcile", "HTTP 500"))
    use_case = ReconcileLedgerUseCase(
        gateway,
        InMemoryCheckRepository(),
        logger=MagicMock(),
    )

    with pytest.raises(ExternalActionError):
        asyncio.run(use_case.reconcile())
    assert use_case.current_check is None


def test_load_latest_keeps_newer_in_process_check() -> None:
    """A persisted check older than the current one should not replace it."""
    older = _check("5", NOW - timedelta(hours=1))
    repository = InMemoryCheckRepository([older])
    gateway = FakeGateway({"qb": 100, "erp": 100})
    use_case = ReconcileLedgerUseCase(
        gateway,
        repository,
        logger=MagicMock(),
        clock=lambda: NOW,
    )

    async def scenario():
        fresh = await use_case.reconcile()
        repository.checks = [older]
        await use_case.load_latest()
        return fresh

    fresh = asyncio.run(scenario())

    assert use_case.current_check is fresh


def test_start_loads_latest_check_once() -> None:
    """The eager load should run once and expose the newest check."""
    latest = _check("15.32", NOW)
    repository = MagicMock()
    repository.fetch_latest_check.return_value = latest
    use_case = ReconcileLedgerUseCase(
        FakeGateway(),
        repository,
        logger=MagicMock(),
    )

    async def scenario():
        first = use_case.start()
        second = use_case.start()
        loaded = await use_case.ensure_loaded()
        return first, second, loaded

    first, second, loaded = asyncio.run(scenario())

    assert first is second
    assert loaded is latest
    repository.fetch_latest_check.assert_called_once()
