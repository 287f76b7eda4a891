"""Tests for the composition root."""

import asyncio
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.application.use_cases.ledger_data import LedgerDataFacade
from src.application.use_cases.sync_ledger import LoadPath
from src.domain.models import MirrorRow
from src.infrastructure import container as container_module
from src.infrastructure import db as db_module
from src.infrastructure.db import SqlAlchemyDatabaseEngineAdapter
from src.infrastructure.external_gateway import HttpxExternalActionGateway
from src.infrastructure.settings import LedgerSettings


class DisconnectedGateway:
    def __init__(self) -> None:
        self.calls = []

    async def invoke(self, action, body=None):
        self.calls.append(action)
        return {"status": "disconnected"}


@pytest.fixture(autouse=True)
def _quiet_loggers(monkeypatch):
    monkeypatch.setattr(container_module, "get_app_logger", MagicMock)


def test_build_gateway_requires_url() -> None:
    """A missing gateway URL should fail fast."""
    with pytest.raises(RuntimeError, match="LEDGER_GATEWAY_URL"):
        container_module.build_gateway(LedgerSettings())


def test_build_gateway_uses_settings() -> None:
    """The HTTP gateway should be configured from settings."""
    gateway = container_module.build_gateway(
        LedgerSettings(gateway_url="https://ledger.example.com")
    )

    assert isinstance(gateway, HttpxExternalActionGateway)


def test_build_ledger_facade_wires_sqlite_mirror() -> None:
    """The wired facade should load rows written to the mirror."""
    db_port = SqlAlchemyDatabaseEngineAdapter(
        db_module._create_engine("sqlite://")
    )
    container_module.build_mirror_repository(db_port).store_rows(
        [MirrorRow(qb_id="1", entity_type="Invoice", balance=Decimal("9"))]
    )
    gateway = DisconnectedGateway()

    facade = container_module.build_ledger_facade(
        db_port=db_port,
        gateway=gateway,
        settings=LedgerSettings(page_size=10),
        error_reporter=MagicMock(),
        notifier=MagicMock(),
    )
    outcome = asyncio.run(facade.load_all())

    assert isinstance(facade, LedgerDataFacade)
    assert outcome.path is LoadPath.WARM
    assert facade.total_receivable == Decimal("9")
    assert facade.posting_gate.is_open
    assert gateway.calls == ["check-status"]
