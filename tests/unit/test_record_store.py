"""
Unit tests for the record store.

Tests cover:
- Insert/get/remove with whole-value semantics
- Copies, not shared references
- Encoding failures leave storage untouched
"""

import pytest

from mintdb.record_server.errors import RecordEncodingError, RecordTooLargeError
from mintdb.record_server.records.types import Record
from mintdb.record_server.storage import RECORDS_REGION, InMemoryBackend
from mintdb.record_server.store import RecordStore


def make_record(record_id=0, **overrides):
    fields = {
        "id": record_id,
        "title": "A Love Supreme",
        "creator": "John Coltrane",
        "collection": "A Love Supreme",
        "external_reference": "ar://love-supreme",
        "price": 10,
        "created_at": 1_000,
    }
    fields.update(overrides)
    return Record(**fields)


class TestRecordStore:
    """Tests for RecordStore."""

    @pytest.fixture
    def entries(self):
        return InMemoryBackend().map(RECORDS_REGION)

    @pytest.fixture
    def store(self, entries):
        return RecordStore(entries)

    @pytest.mark.asyncio
    async def test_get_absent(self, store):
        assert await store.get(0) is None

    @pytest.mark.asyncio
    async def test_insert_then_get(self, store):
        record = make_record(3)
        await store.insert(record)

        assert await store.get(3) == record
        assert await store.contains(3)
        assert store.len_records() == 1

    @pytest.mark.asyncio
    async def test_insert_replaces_whole_value(self, store):
        await store.insert(make_record(1, title="Old", price=1))
        replacement = make_record(1, title="New", price=2, updated_at=2_000)
        await store.insert(replacement)

        assert await store.get(1) == replacement
        assert store.len_records() == 1

    @pytest.mark.asyncio
    async def test_remove_returns_record(self, store):
        record = make_record(4)
        await store.insert(record)

        assert await store.remove(4) == record
        assert await store.get(4) is None
        assert not await store.contains(4)

    @pytest.mark.asyncio
    async def test_remove_absent_leaves_store(self, store):
        await store.insert(make_record(1))

        assert await store.remove(2) is None
        assert store.len_records() == 1

    @pytest.mark.asyncio
    async def test_oversize_insert_keeps_previous(self, store, entries):
        original = make_record(1)
        await store.insert(original)

        with pytest.raises(RecordTooLargeError):
            await store.insert(make_record(1, title="x" * 2048))

        assert await store.get(1) == original

    @pytest.mark.asyncio
    async def test_invalid_record_not_written(self, store, entries):
        with pytest.raises(RecordEncodingError):
            await store.insert(make_record(1, price=-1))

        assert entries.get(1) is None

    @pytest.mark.asyncio
    async def test_custom_size_bound(self, entries):
        store = RecordStore(entries, max_record_size=64)
        with pytest.raises(RecordTooLargeError):
            await store.insert(make_record(1))
