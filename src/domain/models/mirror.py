"""Domain models for mirrored ledger rows."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Union


@dataclass(frozen=True)
class MirrorRow:
    """Mirrored transaction row (Invoice, Bill, Payment, ...).

    Attributes:
        qb_id: Identifier in the external ledger.
        entity_type: Transaction type tag.
        doc_number: Document number, when the type carries one.
        txn_date: ISO transaction date.
        total_amt: Total amount of the document.
        balance: Remaining open balance.
        customer_qb_id: External customer reference, if any.
        vendor_qb_id: External vendor reference, if any.
        raw_json: Embedded snapshot of the external record (may be empty).
        due_date: ISO due date, when the type carries one.
        is_deleted: Soft-delete flag.
        is_voided: Void flag.
    """

    qb_id: str
    entity_type: str
    doc_number: str | None = None
    txn_date: str | None = None
    total_amt: Decimal | None = None
    balance: Decimal | None = None
    customer_qb_id: str | None = None
    vendor_qb_id: str | None = None
    raw_json: Mapping[str, Any] | str | None = None
    due_date: str | None = None
    is_deleted: bool = False
    is_voided: bool = False


@dataclass(frozen=True)
class MirrorEntity:
    """Mirrored master-data row (Account, Customer, Vendor, Item)."""

    qb_id: str
    entity_type: str
    name: str | None = None
    account_type: str | None = None
    account_sub_type: str | None = None
    balance: Decimal | None = None
    is_active: bool = True
    raw_json: Mapping[str, Any] | str | None = None
    is_deleted: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Full external record embedded in a mirror row."""

    payload: Mapping[str, Any]


@dataclass(frozen=True)
class Synthesized:
    """Minimal external record rebuilt from flat mirror columns."""

    fields: Mapping[str, Any] = field(default_factory=dict)


RecordSource = Union[Snapshot, Synthesized]

# External-system shaped record handed to read consumers.
NormalizedRecord = dict[str, Any]


__all__ = [
    "MirrorRow",
    "MirrorEntity",
    "Snapshot",
    "Synthesized",
    "RecordSource",
    "NormalizedRecord",
]
