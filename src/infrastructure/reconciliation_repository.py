"""SQLAlchemy-backed repository for trial-balance checks."""

from datetime import datetime, timezone
import json

from sqlalchemy import text

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.reconciliation_repository import (
    TrialBalanceRepositoryPort,
)
from src.domain.models import AccountDifference, TrialBalanceCheck
from src.infrastructure.logging.logger import get_app_logger
from src.utils.decimal_utils import coerce_decimal


CREATE_CHECKS_SQL = """
CREATE TABLE IF NOT EXISTS trial_balance_checks (
    checked_at TEXT NOT NULL,
    is_balanced BOOLEAN NOT NULL,
    total_diff NUMERIC NOT NULL,
    qb_total NUMERIC NOT NULL,
    erp_total NUMERIC NOT NULL,
    ar_diff NUMERIC,
    ap_diff NUMERIC,
    details TEXT
)
"""

INSERT_CHECK_SQL = text(
    """
    INSERT INTO trial_balance_checks (
        checked_at,
        is_balanced,
        total_diff,
        qb_total,
        erp_total,
        ar_diff,
        ap_diff,
        details
    )
    VALUES (
        :checked_at,
        :is_balanced,
        :total_diff,
        :qb_total,
        :erp_total,
        :ar_diff,
        :ap_diff,
        :details
    )
    """
)

SELECT_LATEST_CHECK_SQL = text(
    """
    SELECT checked_at,
           is_balanced,
           total_diff,
           qb_total,
           erp_total,
           ar_diff,
           ap_diff,
           details
    FROM trial_balance_checks
    ORDER BY checked_at DESC
    LIMIT 1
    """
)


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_timestamp(raw) -> datetime:
    value = raw if isinstance(raw, datetime) else datetime.fromisoformat(raw)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _optional_text(value):
    return None if value is None else str(value)


def _dump_details(check: TrialBalanceCheck) -> str:
    return json.dumps(
        [
            {
                "account": entry.account,
                "qb": str(entry.external_amount),
                "erp": str(entry.mirror_amount),
                "diff": str(entry.difference),
            }
            for entry in check.accounts
        ]
    )


def _load_details(raw) -> tuple[AccountDifference, ...]:
    if not raw:
        return ()
    entries = json.loads(raw) if isinstance(raw, str) else raw
    return tuple(
        AccountDifference(
            account=str(entry.get("account", "Unknown account")),
            external_amount=coerce_decimal(entry.get("qb")),
            mirror_amount=coerce_decimal(entry.get("erp")),
            difference=coerce_decimal(entry.get("diff")),
        )
        for entry in entries
    )


class SqlAlchemyTrialBalanceRepository(TrialBalanceRepositoryPort):
    """Trial-balance check storage backed by SQLAlchemy.

    Timestamps are stored as ISO-8601 UTC text, so ordering by the column
    is chronological.
    """

    def __init__(self, db_port: DatabaseEnginePort, logger=None) -> None:
        """Initialize the repository.

        Args:
            db_port: Port providing access to the mirror engine.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._db_port = db_port
        self._logger = logger or get_app_logger()

    def prepare_checks(self) -> None:
        """Ensure the checks table exists."""
        engine = self._db_port.get_mirror_engine()
        with engine.begin() as conn:
            conn.exec_driver_sql(CREATE_CHECKS_SQL)

    def save_check(self, check: TrialBalanceCheck) -> None:
        """Insert a new trial-balance check.

        Args:
            check: Check to persist.
        """
        params = {
            "checked_at": _to_utc_text(check.checked_at),
            "is_balanced": check.is_balanced,
            "total_diff": str(check.total_diff),
            "qb_total": str(check.external_total),
            "erp_total": str(check.mirror_total),
            "ar_diff": _optional_text(check.ar_diff),
            "ap_diff": _optional_text(check.ap_diff),
            "details": _dump_details(check),
        }
        engine = self._db_port.get_mirror_engine()
        with engine.begin() as conn:
            conn.execute(INSERT_CHECK_SQL, params)
        self._logger.debug(
            f"Saved trial balance check at {params['checked_at']}"
        )

    def fetch_latest_check(self) -> TrialBalanceCheck | None:
        """Return the most recent check, if any."""
        engine = self._db_port.get_mirror_engine()
        with engine.connect() as conn:
            row = conn.execute(SELECT_LATEST_CHECK_SQL).first()
        if row is None:
            return None
        return TrialBalanceCheck(
            is_balanced=bool(row.is_balanced),
            total_diff=coerce_decimal(row.total_diff),
            external_total=coerce_decimal(row.qb_total),
            mirror_total=coerce_decimal(row.erp_total),
            checked_at=_parse_timestamp(row.checked_at),
            ar_diff=(
                None if row.ar_diff is None else coerce_decimal(row.ar_diff)
            ),
            ap_diff=(
                None if row.ap_diff is None else coerce_decimal(row.ap_diff)
            ),
            accounts=_load_details(row.details),
        )


__all__ = ["SqlAlchemyTrialBalanceRepository"]
