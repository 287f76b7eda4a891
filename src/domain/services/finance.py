"""Domain services for receivable and payable aggregates."""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal, InvalidOperation

from src.domain.models.mirror import NormalizedRecord
from src.utils.decimal_utils import coerce_decimal


def _parse_due_date(value) -> date | None:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _open_balance(record: NormalizedRecord) -> Decimal:
    raw = record.get("Balance")
    if not raw:
        return Decimal("0")
    try:
        balance = coerce_decimal(raw)
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return balance if balance.is_finite() else Decimal("0")


def total_open_balance(records: Iterable[NormalizedRecord]) -> Decimal:
    """Sum the positive open balances of the given documents.

    Args:
        records: Invoices or bills in external shape.

    Returns:
        Decimal: Sum of every strictly positive ``Balance``.
    """
    total = Decimal("0")
    for record in records:
        balance = _open_balance(record)
        if balance > 0:
            total += balance
    return total


def overdue_records(
    records: Iterable[NormalizedRecord],
    today: date,
) -> list[NormalizedRecord]:
    """Return documents past their due date that still carry a balance.

    Args:
        records: Invoices or bills in external shape.
        today: Reference date.

    Returns:
        list[NormalizedRecord]: Overdue documents in input order. Records
        without a parsable due date are never overdue.
    """
    overdue = []
    for record in records:
        due_date = _parse_due_date(record.get("DueDate"))
        if due_date is None or due_date >= today:
            continue
        if _open_balance(record) > 0:
            overdue.append(record)
    return overdue


__all__ = ["total_open_balance", "overdue_records"]
