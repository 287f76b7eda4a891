"""In-memory cache of ledger collections owned by one data facade."""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any

from src.domain.models import NormalizedRecord


# Mirror type tag -> cache attribute.
MIRROR_COLLECTIONS = {
    "Invoice": "invoices",
    "Bill": "bills",
    "Payment": "payments",
    "Estimate": "estimates",
    "PurchaseOrder": "purchase_orders",
    "CreditMemo": "credit_memos",
    "Account": "accounts",
    "Customer": "customers",
    "Vendor": "vendors",
    "Item": "items",
}


@dataclass
class LedgerCache:
    """Cached entity collections in external-ledger shape.

    Only the sync orchestrator writes to the cache, through ``apply``.
    """

    invoices: list[NormalizedRecord] = field(default_factory=list)
    bills: list[NormalizedRecord] = field(default_factory=list)
    payments: list[NormalizedRecord] = field(default_factory=list)
    estimates: list[NormalizedRecord] = field(default_factory=list)
    purchase_orders: list[NormalizedRecord] = field(default_factory=list)
    credit_memos: list[NormalizedRecord] = field(default_factory=list)
    accounts: list[NormalizedRecord] = field(default_factory=list)
    customers: list[NormalizedRecord] = field(default_factory=list)
    vendors: list[NormalizedRecord] = field(default_factory=list)
    items: list[NormalizedRecord] = field(default_factory=list)
    employees: list[NormalizedRecord] = field(default_factory=list)
    time_activities: list[NormalizedRecord] = field(default_factory=list)
    company_info: dict[str, Any] | None = None
    updated_at: datetime | None = None

    def apply(self, **collections: Any) -> None:
        """Replace the given collections wholesale.

        Raises:
            AttributeError: If a name is not a cached collection.
        """
        known = self.collection_names()
        for name in collections:
            if name not in known:
                raise AttributeError(f"Unknown ledger collection: {name}")
        for name, value in collections.items():
            setattr(self, name, value)
        self.updated_at = datetime.now(timezone.utc)

    @classmethod
    def collection_names(cls) -> tuple[str, ...]:
        return tuple(
            item.name for item in fields(cls) if item.name != "updated_at"
        )

    def counts(self) -> dict[str, int]:
        """Return the number of cached records per list collection."""
        return {
            name: len(getattr(self, name))
            for name in self.collection_names()
            if isinstance(getattr(self, name), list)
        }


__all__ = ["LedgerCache", "MIRROR_COLLECTIONS"]
