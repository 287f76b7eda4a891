"""Domain constants for the ledger mirror."""

from decimal import Decimal

TRANSACTION_TYPES = (
    "Invoice",
    "Bill",
    "Payment",
    "Estimate",
    "PurchaseOrder",
    "CreditMemo",
)

ENTITY_TYPES = (
    "Account",
    "Customer",
    "Vendor",
    "Item",
)

DEFAULT_PAGE_SIZE = 1000

# Largest absolute trial-balance difference still treated as balanced.
RECONCILE_TOLERANCE = Decimal("0.01")

SECONDARY_FETCH_DELAY_SECONDS = 0.5

# Snapshots with this many top-level keys or fewer are placeholders.
SNAPSHOT_MIN_KEYS = 2


__all__ = [
    "TRANSACTION_TYPES",
    "ENTITY_TYPES",
    "DEFAULT_PAGE_SIZE",
    "RECONCILE_TOLERANCE",
    "SECONDARY_FETCH_DELAY_SECONDS",
    "SNAPSHOT_MIN_KEYS",
]
