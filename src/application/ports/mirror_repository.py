"""Ports for reading the local ledger mirror."""

from dataclasses import dataclass
from typing import Protocol

from src.domain.models import MirrorEntity, MirrorRow


@dataclass(frozen=True)
class MirrorFilter:
    """Equality filter applied to a mirror page read.

    Attributes:
        entity_type: Transaction type (Invoice, Bill, ...) or entity type
            (Account, Customer, Vendor, Item).
    """

    entity_type: str


class MirrorRepositoryPort(Protocol):
    """Port exposing paged read access to mirrored rows."""

    def count_rows(self) -> int:
        """Return the number of live mirrored transaction rows."""

    def fetch_page(
        self,
        mirror_filter: MirrorFilter,
        offset: int,
        limit: int,
    ) -> list[MirrorRow | MirrorEntity]:
        """Return one page of rows ordered by external identifier."""


__all__ = ["MirrorFilter", "MirrorRepositoryPort"]
