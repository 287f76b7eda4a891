"""Use case reading the ledger mirror page by page."""

import asyncio

from src.application.ports.mirror_repository import (
    MirrorFilter,
    MirrorRepositoryPort,
)
from src.domain.constants import DEFAULT_PAGE_SIZE
from src.domain.models import MirrorEntity, MirrorRow, NormalizedRecord
from src.domain.services.normalization import normalize_entity, normalize_row
from src.infrastructure.logging.logger import get_app_logger


class PaginatedMirrorReader:
    """Read every mirrored row of one type in fixed-size pages.

    Reads stop on the first page shorter than the page size, so a mirror of
    N rows costs at most ``N // page_size + 1`` page reads.
    """

    def __init__(
        self,
        repository: MirrorRepositoryPort,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger=None,
    ) -> None:
        """Initialize the reader.

        Args:
            repository: Port providing paged access to the mirror.
            page_size: Rows requested per page.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._repository = repository
        self._page_size = page_size
        self._logger = logger or get_app_logger()

    @property
    def page_size(self) -> int:
        return self._page_size

    async def count_rows(self) -> int:
        """Return the live transaction row count of the mirror."""
        return await asyncio.to_thread(self._repository.count_rows)

    async def read_raw(
        self,
        mirror_filter: MirrorFilter,
    ) -> list[MirrorRow | MirrorEntity]:
        """Return every raw row matching the filter.

        Args:
            mirror_filter: Type and soft-delete filter.

        Returns:
            list[MirrorRow | MirrorEntity]: Rows in ascending offset order.
        """
        rows: list[MirrorRow | MirrorEntity] = []
        offset = 0
        pages = 0
        while True:
            page = await asyncio.to_thread(
                self._repository.fetch_page,
                mirror_filter,
                offset,
                self._page_size,
            )
            pages += 1
            rows.extend(page)
            if len(page) < self._page_size:
                break
            offset += self._page_size
        self._logger.debug(
            f"Read {len(rows)} {mirror_filter.entity_type} rows "
            f"from the mirror in {pages} pages"
        )
        return rows

    async def read_all(
        self,
        mirror_filter: MirrorFilter,
    ) -> list[NormalizedRecord]:
        """Return every matching row normalized to the external shape."""
        rows = await self.read_raw(mirror_filter)
        return [
            normalize_entity(row)
            if isinstance(row, MirrorEntity)
            else normalize_row(row)
            for row in rows
        ]


__all__ = ["PaginatedMirrorReader"]
