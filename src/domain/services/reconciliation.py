"""Domain services for trial-balance checks."""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from src.domain.constants import RECONCILE_TOLERANCE
from src.domain.models.reconciliation import (
    AccountDifference,
    TrialBalanceCheck,
)
from src.domain.policies import is_within_tolerance
from src.utils.decimal_utils import coerce_decimal


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _optional_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    return coerce_decimal(value)


def build_account_differences(
    entries: Iterable[Mapping[str, Any]] | None,
) -> tuple[AccountDifference, ...]:
    """Build per-account differences from a reconcile payload.

    Args:
        entries: Raw per-account rows from the reconcile action.

    Returns:
        tuple[AccountDifference, ...]: Differences in payload order. Missing
        differences are computed as external minus mirror.
    """
    differences = []
    for entry in entries or ():
        external = coerce_decimal(
            _first_present(entry, "qb", "external", "qb_amount")
        )
        mirror = coerce_decimal(
            _first_present(entry, "erp", "mirror", "erp_amount")
        )
        raw_diff = _first_present(entry, "diff", "difference")
        difference = (
            coerce_decimal(raw_diff)
            if raw_diff is not None
            else external - mirror
        )
        differences.append(
            AccountDifference(
                account=str(
                    _first_present(entry, "account", "name", "account_name")
                    or "Unknown account"
                ),
                external_amount=external,
                mirror_amount=mirror,
                difference=difference,
            )
        )
    return tuple(differences)


def build_trial_balance_check(
    payload: Mapping[str, Any],
    tolerance: Decimal = RECONCILE_TOLERANCE,
    checked_at: datetime | None = None,
) -> TrialBalanceCheck:
    """Build a TrialBalanceCheck from the reconcile action response.

    Args:
        payload: Response of the external reconcile action.
        tolerance: Largest absolute difference treated as balanced.
        checked_at: Optional timestamp; defaults to now (UTC).

    Returns:
        TrialBalanceCheck: Check with the balanced flag derived from the
        absolute total difference.
    """
    external_total = coerce_decimal(
        _first_present(payload, "qb_total", "qb", "external_total")
    )
    mirror_total = coerce_decimal(
        _first_present(payload, "erp_total", "erp", "mirror_total")
    )
    raw_diff = _first_present(payload, "total_diff", "trial_balance_diff")
    if raw_diff is None:
        total_diff = abs(external_total - mirror_total)
    else:
        total_diff = abs(coerce_decimal(raw_diff))
    return TrialBalanceCheck(
        is_balanced=is_within_tolerance(total_diff, tolerance),
        total_diff=total_diff,
        external_total=external_total,
        mirror_total=mirror_total,
        ar_diff=_optional_decimal(payload.get("ar_diff")),
        ap_diff=_optional_decimal(payload.get("ap_diff")),
        accounts=build_account_differences(
            _first_present(payload, "accounts", "details")
        ),
        checked_at=checked_at or datetime.now(timezone.utc),
    )


def format_amount(value: Decimal | None) -> str:
    """Format an amount with two decimals."""
    return f"{coerce_decimal(value):.2f}"


def describe_imbalance(check: TrialBalanceCheck) -> str:
    """Return a human-readable, per-account description of an imbalance.

    Args:
        check: Unbalanced trial-balance check.

    Returns:
        str: Multi-line message starting with the total difference.
    """
    lines = [
        "Posting blocked: trial balance is out of balance by "
        f"{format_amount(check.total_diff)} "
        f"(external={format_amount(check.external_total)} vs "
        f"mirror={format_amount(check.mirror_total)})."
    ]
    if check.ar_diff:
        lines.append(f"Accounts receivable: Δ={format_amount(check.ar_diff)}")
    if check.ap_diff:
        lines.append(f"Accounts payable: Δ={format_amount(check.ap_diff)}")
    for entry in check.accounts:
        lines.append(
            f"{entry.account}: external={format_amount(entry.external_amount)}"
            f" vs mirror={format_amount(entry.mirror_amount)}"
            f" (Δ={format_amount(entry.difference)})"
        )
    return "\n".join(lines)


__all__ = [
    "build_account_differences",
    "build_trial_balance_check",
    "format_amount",
    "describe_imbalance",
]
