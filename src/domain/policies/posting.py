"""Policies deciding whether ledger totals agree."""

from decimal import Decimal

from src.domain.constants import RECONCILE_TOLERANCE


def is_within_tolerance(
    difference: Decimal,
    tolerance: Decimal = RECONCILE_TOLERANCE,
) -> bool:
    """Return True when an absolute difference is at or below tolerance.

    Args:
        difference: Signed or absolute difference between two totals.
        tolerance: Largest accepted absolute difference.

    Returns:
        bool: True when the totals are considered balanced.
    """
    return abs(difference) <= tolerance


__all__ = ["is_within_tolerance"]
