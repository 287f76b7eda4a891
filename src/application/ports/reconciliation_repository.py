"""Port for persisting trial-balance checks."""

from typing import Protocol

from src.domain.models import TrialBalanceCheck


class TrialBalanceRepositoryPort(Protocol):
    """Port exposing storage for trial-balance checks."""

    def save_check(self, check: TrialBalanceCheck) -> None:
        """Persist a new check."""

    def fetch_latest_check(self) -> TrialBalanceCheck | None:
        """Return the most recent check by timestamp, if any."""


__all__ = ["TrialBalanceRepositoryPort"]
