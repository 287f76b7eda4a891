"""SQLAlchemy-backed repository for the local ledger mirror."""

from dataclasses import dataclass
from datetime import datetime, timezone
import json
from typing import Any, Iterable

from sqlalchemy import text

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.mirror_repository import (
    MirrorFilter,
    MirrorRepositoryPort,
)
from src.domain.constants import ENTITY_TYPES, TRANSACTION_TYPES
from src.domain.models import MirrorEntity, MirrorRow
from src.infrastructure.logging.logger import get_app_logger
from src.utils.decimal_utils import coerce_decimal


TRANSACTIONS_TABLE = "qb_transactions"

ENTITY_TABLES = {
    "Account": "qb_accounts",
    "Customer": "qb_customers",
    "Vendor": "qb_vendors",
    "Item": "qb_items",
}

CREATE_TRANSACTIONS_SQL = """
CREATE TABLE IF NOT EXISTS qb_transactions (
    qb_id TEXT NOT NULL,
    entity_type TEXT NOT NULL,
    doc_number TEXT,
    txn_date TEXT,
    due_date TEXT,
    total_amt NUMERIC,
    balance NUMERIC,
    customer_qb_id TEXT,
    vendor_qb_id TEXT,
    raw_json TEXT,
    is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
    is_voided BOOLEAN NOT NULL DEFAULT FALSE,
    last_synced_at TEXT,
    PRIMARY KEY (qb_id, entity_type)
)
"""

CREATE_ENTITY_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    qb_id TEXT PRIMARY KEY,
    name TEXT,
    account_type TEXT,
    account_sub_type TEXT,
    balance NUMERIC,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    raw_json TEXT,
    is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
    last_synced_at TEXT
)
"""

COUNT_TRANSACTIONS_SQL = text(
    """
    SELECT COUNT(*) AS row_count
    FROM qb_transactions
    WHERE is_deleted = :is_deleted
    """
)

SELECT_TRANSACTIONS_PAGE_SQL = text(
    """
    SELECT qb_id,
           entity_type,
           doc_number,
           txn_date,
           due_date,
           total_amt,
           balance,
           customer_qb_id,
           vendor_qb_id,
           raw_json,
           is_deleted,
           is_voided
    FROM qb_transactions
    WHERE entity_type = :entity_type
      AND is_deleted = :is_deleted
    ORDER BY qb_id
    LIMIT :limit OFFSET :offset
    """
)

SELECT_ENTITY_PAGE_SQL = """
    SELECT qb_id,
           name,
           account_type,
           account_sub_type,
           balance,
           is_active,
           raw_json,
           is_deleted
    FROM {table}
    WHERE is_deleted = :is_deleted
    ORDER BY qb_id
    LIMIT :limit OFFSET :offset
"""

DELETE_TRANSACTION_SQL = text(
    """
    DELETE FROM qb_transactions
    WHERE qb_id = :qb_id AND entity_type = :entity_type
    """
)

INSERT_TRANSACTION_SQL = text(
    """
    INSERT INTO qb_transactions (
        qb_id,
        entity_type,
        doc_number,
        txn_date,
        due_date,
        total_amt,
        balance,
        customer_qb_id,
        vendor_qb_id,
        raw_json,
        is_deleted,
        is_voided,
        last_synced_at
    )
    VALUES (
        :qb_id,
        :entity_type,
        :doc_number,
        :txn_date,
        :due_date,
        :total_amt,
        :balance,
        :customer_qb_id,
        :vendor_qb_id,
        :raw_json,
        :is_deleted,
        :is_voided,
        :last_synced_at
    )
    """
)

DELETE_ENTITY_SQL = "DELETE FROM {table} WHERE qb_id = :qb_id"

INSERT_ENTITY_SQL = """
    INSERT INTO {table} (
        qb_id,
        name,
        account_type,
        account_sub_type,
        balance,
        is_active,
        raw_json,
        is_deleted,
        last_synced_at
    )
    VALUES (
        :qb_id,
        :name,
        :account_type,
        :account_sub_type,
        :balance,
        :is_active,
        :raw_json,
        :is_deleted,
        :last_synced_at
    )
"""

MARK_TRANSACTION_DELETED_SQL = text(
    """
    UPDATE qb_transactions
    SET is_deleted = :is_deleted, last_synced_at = :last_synced_at
    WHERE qb_id = :qb_id AND entity_type = :entity_type
    """
)


def _entity_table(entity_type: str) -> str:
    try:
        return ENTITY_TABLES[entity_type]
    except KeyError as exc:
        raise ValueError(f"Unknown mirror entity type: {entity_type}") from exc


def _optional_decimal(value):
    return None if value is None else coerce_decimal(value)


def _dump_snapshot(raw) -> str | None:
    if raw is None or isinstance(raw, str):
        return raw
    return json.dumps(raw, default=str)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class MirrorWriteResult:
    """Counts of rows written to the mirror."""

    transactions: int
    entities: int


class SqlAlchemyMirrorRepository(MirrorRepositoryPort):
    """Mirror repository backed by SQLAlchemy."""

    def __init__(self, db_port: DatabaseEnginePort, logger=None) -> None:
        """Initialize the repository.

        Args:
            db_port: Port providing access to the mirror engine.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._db_port = db_port
        self._logger = logger or get_app_logger()

    def prepare_mirror(self) -> None:
        """Ensure the mirror tables exist."""
        engine = self._db_port.get_mirror_engine()
        with engine.begin() as conn:
            conn.exec_driver_sql(CREATE_TRANSACTIONS_SQL)
            for table in ENTITY_TABLES.values():
                conn.exec_driver_sql(CREATE_ENTITY_SQL.format(table=table))

    def count_rows(self) -> int:
        engine = self._db_port.get_mirror_engine()
        with engine.connect() as conn:
            result = conn.execute(
                COUNT_TRANSACTIONS_SQL,
                {"is_deleted": False},
            ).first()
        return int(result.row_count) if result else 0

    def fetch_page(
        self,
        mirror_filter: MirrorFilter,
        offset: int,
        limit: int,
    ) -> list[MirrorRow | MirrorEntity]:
        """Return one page of rows matching the filter.

        Args:
            mirror_filter: Type and soft-delete filter.
            offset: Number of rows to skip.
            limit: Maximum number of rows to return.

        Returns:
            list[MirrorRow | MirrorEntity]: Rows ordered by external id.
        """
        params = {
            "is_deleted": False,
            "limit": limit,
            "offset": offset,
        }
        if mirror_filter.entity_type in TRANSACTION_TYPES:
            return self._fetch_transactions(mirror_filter, params)
        if mirror_filter.entity_type in ENTITY_TYPES:
            return self._fetch_entities(mirror_filter, params)
        raise ValueError(
            f"Unknown mirror entity type: {mirror_filter.entity_type}"
        )

    def store_rows(
        self,
        rows: Iterable[MirrorRow | MirrorEntity],
    ) -> MirrorWriteResult:
        """Insert or replace mirrored rows keyed by external id and type.

        Args:
            rows: Transaction and entity rows to write.

        Returns:
            MirrorWriteResult: Number of rows written per kind.
        """
        synced_at = _now_iso()
        transactions: list[dict[str, Any]] = []
        entities: dict[str, list[dict[str, Any]]] = {}
        for row in rows:
            if isinstance(row, MirrorEntity):
                table = _entity_table(row.entity_type)
                entities.setdefault(table, []).append(
                    self._entity_params(row, synced_at)
                )
            else:
                transactions.append(self._transaction_params(row, synced_at))

        engine = self._db_port.get_mirror_engine()
        with engine.begin() as conn:
            for params in transactions:
                conn.execute(DELETE_TRANSACTION_SQL, params)
                conn.execute(INSERT_TRANSACTION_SQL, params)
            for table, payload in entities.items():
                for params in payload:
                    conn.execute(
                        text(DELETE_ENTITY_SQL.format(table=table)),
                        params,
                    )
                    conn.execute(
                        text(INSERT_ENTITY_SQL.format(table=table)),
                        params,
                    )

        entity_count = sum(len(payload) for payload in entities.values())
        self._logger.info(
            f"Stored {len(transactions)} transactions and "
            f"{entity_count} entities in the mirror"
        )
        return MirrorWriteResult(
            transactions=len(transactions),
            entities=entity_count,
        )

    def mark_deleted(self, entity_type: str, qb_ids: Iterable[str]) -> int:
        """Soft-delete mirrored transactions.

        Args:
            entity_type: Transaction type of the rows.
            qb_ids: External identifiers to flag as deleted.

        Returns:
            int: Number of rows flagged.
        """
        payload = [
            {
                "qb_id": qb_id,
                "entity_type": entity_type,
                "is_deleted": True,
                "last_synced_at": _now_iso(),
            }
            for qb_id in qb_ids
        ]
        if not payload:
            return 0
        engine = self._db_port.get_mirror_engine()
        with engine.begin() as conn:
            conn.execute(MARK_TRANSACTION_DELETED_SQL, payload)
        return len(payload)

    def _fetch_transactions(
        self,
        mirror_filter: MirrorFilter,
        params: dict[str, Any],
    ) -> list[MirrorRow]:
        params = {**params, "entity_type": mirror_filter.entity_type}
        engine = self._db_port.get_mirror_engine()
        with engine.connect() as conn:
            rows = conn.execute(SELECT_TRANSACTIONS_PAGE_SQL, params).all()
        return [
            MirrorRow(
                qb_id=str(row.qb_id),
                entity_type=row.entity_type,
                doc_number=row.doc_number,
                txn_date=row.txn_date,
                due_date=row.due_date,
                total_amt=_optional_decimal(row.total_amt),
                balance=_optional_decimal(row.balance),
                customer_qb_id=row.customer_qb_id,
                vendor_qb_id=row.vendor_qb_id,
                raw_json=row.raw_json,
                is_deleted=bool(row.is_deleted),
                is_voided=bool(row.is_voided),
            )
            for row in rows
        ]

    def _fetch_entities(
        self,
        mirror_filter: MirrorFilter,
        params: dict[str, Any],
    ) -> list[MirrorEntity]:
        sql = SELECT_ENTITY_PAGE_SQL.format(
            table=_entity_table(mirror_filter.entity_type)
        )
        engine = self._db_port.get_mirror_engine()
        with engine.connect() as conn:
            rows = conn.execute(text(sql), params).all()
        return [
            MirrorEntity(
                qb_id=str(row.qb_id),
                entity_type=mirror_filter.entity_type,
                name=row.name,
                account_type=row.account_type,
                account_sub_type=row.account_sub_type,
                balance=_optional_decimal(row.balance),
                is_active=bool(row.is_active),
                raw_json=row.raw_json,
                is_deleted=bool(row.is_deleted),
            )
            for row in rows
        ]

    @staticmethod
    def _transaction_params(row: MirrorRow, synced_at: str) -> dict:
        return {
            "qb_id": row.qb_id,
            "entity_type": row.entity_type,
            "doc_number": row.doc_number,
            "txn_date": row.txn_date,
            "due_date": row.due_date,
            "total_amt": _db_number(row.total_amt),
            "balance": _db_number(row.balance),
            "customer_qb_id": row.customer_qb_id,
            "vendor_qb_id": row.vendor_qb_id,
            "raw_json": _dump_snapshot(row.raw_json),
            "is_deleted": row.is_deleted,
            "is_voided": row.is_voided,
            "last_synced_at": synced_at,
        }

    @staticmethod
    def _entity_params(row: MirrorEntity, synced_at: str) -> dict:
        return {
            "qb_id": row.qb_id,
            "name": row.name,
            "account_type": row.account_type,
            "account_sub_type": row.account_sub_type,
            "balance": _db_number(row.balance),
            "is_active": row.is_active,
            "raw_json": _dump_snapshot(row.raw_json),
            "is_deleted": row.is_deleted,
            "last_synced_at": synced_at,
        }


def _db_number(value):
    # sqlite3 has no Decimal adapter.
    return None if value is None else str(value)


__all__ = [
    "SqlAlchemyMirrorRepository",
    "MirrorWriteResult",
    "ENTITY_TABLES",
    "TRANSACTIONS_TABLE",
]
