"""Tests for the LedgerCache."""

import pytest

from src.application.use_cases.ledger_cache import (
    MIRROR_COLLECTIONS,
    LedgerCache,
)
from src.domain.constants import ENTITY_TYPES, TRANSACTION_TYPES


def test_every_mirrored_type_has_a_collection() -> None:
    """Each mirrored type should map onto a cache attribute."""
    names = LedgerCache.collection_names()

    assert set(MIRROR_COLLECTIONS) == set(TRANSACTION_TYPES + ENTITY_TYPES)
    assert set(MIRROR_COLLECTIONS.values()) <= set(names)


def test_apply_replaces_collections_and_stamps_update() -> None:
    """apply should replace lists wholesale and record the update time."""
    cache = LedgerCache(invoices=[{"Id": "old"}])

    cache.apply(invoices=[{"Id": "1"}, {"Id": "2"}], company_info={"a": 1})

    assert cache.invoices == [{"Id": "1"}, {"Id": "2"}]
    assert cache.company_info == {"a": 1}
    assert cache.updated_at is not None
    assert cache.counts()["invoices"] == 2
    assert "company_info" not in cache.counts()


def test_apply_rejects_unknown_collection_without_partial_update() -> None:
    """Unknown names should fail before any collection is replaced."""
    cache = LedgerCache()

    with pytest.raises(AttributeError):
        cache.apply(invoices=[{"Id": "1"}], journals=[])

    assert cache.invoices == []
    assert cache.updated_at is None
