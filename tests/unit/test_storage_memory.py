"""
Unit tests for in-memory storage backend.

Tests cover:
- Cell get/set
- Map insert/get/remove value semantics
- Region isolation
- Capacity bound
"""

import pytest

from mintdb.record_server.errors import StorageCapacityError, StorageError
from mintdb.record_server.storage import (
    COUNTER_REGION,
    RECORDS_REGION,
    DurableCell,
    DurableKeyValueStore,
    InMemoryBackend,
    StorageBackend,
)


class TestInMemoryBackend:
    """Tests for InMemoryBackend."""

    @pytest.fixture
    def backend(self):
        """Create a fresh backend."""
        return InMemoryBackend(max_value_size=16)

    def test_implements_protocols(self, backend):
        assert isinstance(backend, StorageBackend)
        assert isinstance(backend.cell(COUNTER_REGION), DurableCell)
        assert isinstance(backend.map(RECORDS_REGION), DurableKeyValueStore)

    def test_cell_initial_value(self, backend):
        assert backend.cell(COUNTER_REGION).get() == 0

    def test_cell_custom_initial_value(self, backend):
        assert backend.cell(5, initial=42).get() == 42

    def test_cell_set(self, backend):
        cell = backend.cell(COUNTER_REGION)
        cell.set(9)
        assert cell.get() == 9

    def test_same_region_shared(self, backend):
        """Opening a region twice returns the same state."""
        backend.cell(COUNTER_REGION).set(3)
        assert backend.cell(COUNTER_REGION).get() == 3

        backend.map(RECORDS_REGION).insert(1, b"one")
        assert backend.map(RECORDS_REGION).get(1) == b"one"

    def test_initial_ignored_after_first_open(self, backend):
        backend.cell(COUNTER_REGION).set(3)
        assert backend.cell(COUNTER_REGION, initial=100).get() == 3

    def test_region_kind_conflict(self, backend):
        backend.cell(COUNTER_REGION)
        with pytest.raises(StorageError):
            backend.map(COUNTER_REGION)

        backend.map(RECORDS_REGION)
        with pytest.raises(StorageError):
            backend.cell(RECORDS_REGION)

    def test_map_insert_and_get(self, backend):
        entries = backend.map(RECORDS_REGION)

        assert entries.insert(1, b"a") is None
        assert entries.get(1) == b"a"
        assert len(entries) == 1

    def test_map_insert_overwrites(self, backend):
        entries = backend.map(RECORDS_REGION)
        entries.insert(1, b"a")

        assert entries.insert(1, b"b") == b"a"
        assert entries.get(1) == b"b"
        assert len(entries) == 1

    def test_map_remove(self, backend):
        entries = backend.map(RECORDS_REGION)
        entries.insert(1, b"a")

        assert entries.remove(1) == b"a"
        assert entries.get(1) is None
        assert len(entries) == 0

    def test_map_remove_absent(self, backend):
        entries = backend.map(RECORDS_REGION)
        entries.insert(1, b"a")

        assert entries.remove(2) is None
        assert len(entries) == 1

    def test_regions_isolated(self, backend):
        backend.map(1).insert(1, b"a")
        assert backend.map(2).get(1) is None

    def test_capacity_bound(self, backend):
        entries = backend.map(RECORDS_REGION)

        with pytest.raises(StorageCapacityError):
            entries.insert(1, b"x" * 17)

        assert entries.get(1) is None

    def test_key_range(self, backend):
        entries = backend.map(RECORDS_REGION)
        with pytest.raises(StorageError):
            entries.insert(-1, b"a")
        with pytest.raises(StorageError):
            entries.insert(2**64, b"a")

    def test_cell_update(self, backend):
        cell = backend.cell(COUNTER_REGION)

        assert cell.update(lambda v: v + 3) == 0
        assert cell.get() == 3

    def test_cell_update_failure_keeps_value(self, backend):
        cell = backend.cell(COUNTER_REGION, initial=2)

        def refuse(value):
            raise StorageError("refused")

        with pytest.raises(StorageError):
            cell.update(refuse)
        assert cell.get() == 2
