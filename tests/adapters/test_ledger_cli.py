"""Tests for the ledger_cli adapter."""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapters import ledger_cli
from src.application.use_cases.ledger_cache import LedgerCache
from src.application.use_cases.sync_ledger import LoadOutcome, LoadPath
from src.domain.errors import ExternalActionError
from src.domain.models import ConnectionState, TrialBalanceCheck


class _Gateway:
    def __init__(self) -> None:
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True


def _check(diff: str) -> TrialBalanceCheck:
    return TrialBalanceCheck(
        is_balanced=Decimal(diff) <= Decimal("0.01"),
        total_diff=Decimal(diff),
        external_total=Decimal("1000"),
        mirror_total=Decimal("1000") - Decimal(diff),
        checked_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def facade(monkeypatch):
    """Patch the wiring so main() drives a fake facade."""
    gateway = _Gateway()
    fake = MagicMock()
    fake.cache = LedgerCache(invoices=[{"Id": "1"}])
    fake.aclose = AsyncMock()
    fake.wait_background = AsyncMock()
    monkeypatch.setattr(
        ledger_cli.LedgerSettings,
        "from_env",
        classmethod(lambda cls: cls()),
    )
    monkeypatch.setattr(ledger_cli, "build_gateway", lambda settings: gateway)

    def _fake_build(gateway, settings):
        return fake

    monkeypatch.setattr(ledger_cli, "build_ledger_facade", _fake_build)
    monkeypatch.setattr(ledger_cli, "get_app_logger", MagicMock)
    fake.gateway = gateway
    return fake


def test_status_prints_connection_state(facade, capsys) -> None:
    """status should report the connection state and exit code."""
    facade.check_connection = AsyncMock(return_value=True)
    facade.connection_state = ConnectionState.CONNECTED

    assert ledger_cli.main(["status"]) == 0

    assert "connected" in capsys.readouterr().out
    facade.aclose.assert_awaited_once()
    assert facade.gateway.closed


def test_load_prints_path_and_counts(facade, capsys) -> None:
    """load should print the path taken and per-collection counts."""
    facade.load_all = AsyncMock(
        return_value=LoadOutcome(LoadPath.COLD, failed_actions=("list-items",))
    )

    assert ledger_cli.main(["load", "--wait"]) == 0

    out = capsys.readouterr().out
    assert "cold path" in out
    assert "invoices: 1" in out
    assert "list-items" in out
    facade.wait_background.assert_awaited_once()


def test_sync_passes_entity(facade, capsys) -> None:
    """sync should forward the entity name."""
    facade.sync_entity = AsyncMock(return_value={"synced": 5})

    assert ledger_cli.main(["sync", "customers"]) == 0

    facade.sync_entity.assert_awaited_once_with("customers")
    assert "Synced 5 customers." in capsys.readouterr().out


def test_reconcile_mismatch_prints_details(facade, capsys) -> None:
    """An unbalanced check should print the blocked description."""
    facade.reconcile = AsyncMock(return_value=_check("15.32"))

    assert ledger_cli.main(["reconcile"]) == 1

    assert "out of balance by 15.32" in capsys.readouterr().out


def test_gate_reports_open_without_check(facade, capsys) -> None:
    """gate should treat a missing check as open."""
    facade.ensure_check_loaded = AsyncMock(return_value=None)

    assert ledger_cli.main(["gate"]) == 0

    assert "open" in capsys.readouterr().out


def test_gate_reports_closed(facade, capsys) -> None:
    """gate should exit non-zero while postings are blocked."""
    facade.ensure_check_loaded = AsyncMock(return_value=_check("2"))
    facade.posting_gate = SimpleNamespace(is_open=False)

    assert ledger_cli.main(["gate"]) == 1

    assert "closed" in capsys.readouterr().out


def test_errors_are_printed_and_return_failure(facade, capsys) -> None:
    """Command failures should be reported without a traceback."""
    facade.sync_entity = AsyncMock(
        side_effect=ExternalActionError("sync-vendors", "HTTP 500")
    )

    assert ledger_cli.main(["sync", "vendors"]) == 1

    assert "Error: sync-vendors: HTTP 500" in capsys.readouterr().out
    facade.aclose.assert_awaited_once()


def test_load_fails_when_disconnected(facade, capsys) -> None:
    """load should exit non-zero when nothing could be loaded."""
    facade.load_all = AsyncMock(
        return_value=LoadOutcome(LoadPath.DISCONNECTED)
    )

    assert ledger_cli.main(["load"]) == 1

    assert "disconnected" in capsys.readouterr().out
    facade.aclose.assert_awaited_once()
