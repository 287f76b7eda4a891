"""Rebuild external-ledger records from mirror rows.

A mirror row either embeds a full snapshot of the external record or only
carries flat columns. ``classify_row`` is the single place that decides
which one applies; normalization then maps the chosen variant to the
external shape. Both steps are total: malformed snapshots fall back to the
flat columns instead of raising.
"""

import json
from typing import Any, Mapping

from src.domain.constants import SNAPSHOT_MIN_KEYS
from src.domain.models.mirror import (
    MirrorEntity,
    MirrorRow,
    NormalizedRecord,
    RecordSource,
    Snapshot,
    Synthesized,
)


def _load_snapshot(raw: Mapping[str, Any] | str | None) -> Mapping | None:
    """Return the embedded snapshot as a mapping, or None when unusable."""
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, Mapping):
        return None
    return raw


def _is_real_snapshot(snapshot: Mapping | None) -> bool:
    return snapshot is not None and len(snapshot) > SNAPSHOT_MIN_KEYS


def _drop_missing(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _row_fields(row: MirrorRow) -> dict[str, Any]:
    fields = _drop_missing(
        {
            "Id": row.qb_id,
            "DocNumber": row.doc_number,
            "TxnDate": row.txn_date,
            "DueDate": row.due_date,
            "TotalAmt": row.total_amt,
            "Balance": row.balance,
        }
    )
    if row.customer_qb_id:
        fields["CustomerRef"] = {"value": row.customer_qb_id}
    if row.vendor_qb_id:
        fields["VendorRef"] = {"value": row.vendor_qb_id}
    return fields


def _entity_fields(entity: MirrorEntity) -> dict[str, Any]:
    if entity.entity_type == "Account":
        return _drop_missing(
            {
                "Id": entity.qb_id,
                "Name": entity.name,
                "AccountType": entity.account_type,
                "AccountSubType": entity.account_sub_type,
                "CurrentBalance": entity.balance,
                "Active": entity.is_active,
            }
        )
    if entity.entity_type == "Item":
        return _drop_missing(
            {
                "Id": entity.qb_id,
                "Name": entity.name,
                "Active": entity.is_active,
            }
        )
    return _drop_missing(
        {
            "Id": entity.qb_id,
            "DisplayName": entity.name,
            "Balance": entity.balance,
            "Active": entity.is_active,
        }
    )


def classify_row(row: MirrorRow | MirrorEntity) -> RecordSource:
    """Decide whether a row is served from its snapshot or its columns.

    Args:
        row: Mirrored transaction or entity row.

    Returns:
        RecordSource: ``Snapshot`` when the embedded blob has more than two
        top-level keys, otherwise ``Synthesized`` from the flat columns.
    """
    snapshot = _load_snapshot(row.raw_json)
    if _is_real_snapshot(snapshot):
        return Snapshot(payload=snapshot)
    if isinstance(row, MirrorEntity):
        return Synthesized(fields=_entity_fields(row))
    return Synthesized(fields=_row_fields(row))


def to_record(source: RecordSource) -> NormalizedRecord:
    """Map a record source variant to the external record shape."""
    if isinstance(source, Snapshot):
        return dict(source.payload)
    return dict(source.fields)


def normalize_row(row: MirrorRow) -> NormalizedRecord:
    """Return the external-shaped record for a mirrored transaction."""
    return to_record(classify_row(row))


def normalize_entity(entity: MirrorEntity) -> NormalizedRecord:
    """Return the external-shaped record for a mirrored entity."""
    return to_record(classify_row(entity))


__all__ = [
    "classify_row",
    "to_record",
    "normalize_row",
    "normalize_entity",
]
