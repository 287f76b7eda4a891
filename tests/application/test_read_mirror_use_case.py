"""Tests for the PaginatedMirrorReader."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from src.application.ports.mirror_repository import MirrorFilter
from src.application.use_cases.read_mirror import PaginatedMirrorReader
from src.domain.models import MirrorEntity, MirrorRow


class FakeMirrorRepository:
    """In-memory mirror that records every page request."""

    def __init__(self, rows) -> None:
        self.rows = list(rows)
        self.page_calls: list[tuple[str, int, int]] = []

    def count_rows(self) -> int:
        return len(self.rows)

    def fetch_page(self, mirror_filter, offset, limit):
        self.page_calls.append((mirror_filter.entity_type, offset, limit))
        matching = [
            row
            for row in self.rows
            if row.entity_type == mirror_filter.entity_type
        ]
        return matching[offset:offset + limit]


def _invoices(count: int) -> list[MirrorRow]:
    return [
        MirrorRow(qb_id=f"{index:05d}", entity_type="Invoice")
        for index in range(count)
    ]


@pytest.mark.parametrize(
    ("row_count", "expected_reads"),
    [(0, 1), (99, 1), (100, 2), (101, 2), (300, 4)],
)
def test_read_raw_stops_on_short_page(row_count, expected_reads) -> None:
    """The reader should issue floor(N / P) + 1 page reads."""
    repository = FakeMirrorRepository(_invoices(row_count))
    reader = PaginatedMirrorReader(
        repository,
        page_size=100,
        logger=MagicMock(),
    )

    rows = asyncio.run(reader.read_raw(MirrorFilter(entity_type="Invoice")))

    assert len(rows) == row_count
    assert len(repository.page_calls) == expected_reads
    assert [call[1] for call in repository.page_calls] == [
        index * 100 for index in range(expected_reads)
    ]


def test_default_page_size_reads_2500_rows_in_three_pages() -> None:
    """2,500 rows with the default page size need exactly three reads."""
    repository = FakeMirrorRepository(_invoices(2500))
    reader = PaginatedMirrorReader(repository, logger=MagicMock())

    rows = asyncio.run(reader.read_raw(MirrorFilter(entity_type="Invoice")))

    assert [row.qb_id for row in rows] == [
        f"{index:05d}" for index in range(2500)
    ]
    assert repository.page_calls == [
        ("Invoice", 0, 1000),
        ("Invoice", 1000, 1000),
        ("Invoice", 2000, 1000),
    ]


def test_read_all_normalizes_rows_and_entities() -> None:
    """read_all should return records in the external shape."""
    snapshot = {"Id": "1", "DocNumber": "INV-1", "TotalAmt": 5}
    repository = FakeMirrorRepository(
        [
            MirrorRow(
                qb_id="1",
                entity_type="Invoice",
                raw_json=json.dumps(snapshot),
            ),
            MirrorEntity(qb_id="7", entity_type="Vendor", name="Paper Co"),
        ]
    )
    reader = PaginatedMirrorReader(repository, logger=MagicMock())

    invoices = asyncio.run(reader.read_all(MirrorFilter("Invoice")))
    vendors = asyncio.run(reader.read_all(MirrorFilter("Vendor")))

    assert invoices == [snapshot]
    assert vendors == [{"Id": "7", "DisplayName": "Paper Co", "Active": True}]


def test_count_rows_delegates_to_repository() -> None:
    """count_rows should return the repository probe result."""
    reader = PaginatedMirrorReader(
        FakeMirrorRepository(_invoices(3)),
        logger=MagicMock(),
    )

    assert asyncio.run(reader.count_rows()) == 3


def test_page_size_must_be_positive() -> None:
    """A zero page size would never terminate and is rejected."""
    with pytest.raises(ValueError):
        PaginatedMirrorReader(FakeMirrorRepository([]), page_size=0)
