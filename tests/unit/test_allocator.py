"""
Unit tests for the identifier allocator.

Tests cover:
- Sequential allocation from zero
- Persist-before-return
- Concurrent allocation
- Exhaustion and storage failure
"""

import asyncio

import pytest

from mintdb.record_server.errors import IdSpaceExhaustedError, StorageError
from mintdb.record_server.records.codec import U64_MAX
from mintdb.record_server.storage import COUNTER_REGION, InMemoryBackend, InMemoryCell
from mintdb.record_server.store import IdAllocator


class FailingCell(InMemoryCell):
    """Cell whose writes always fail."""

    def set(self, value: int) -> None:
        raise StorageError("disk full")


class TestIdAllocator:
    """Tests for IdAllocator."""

    @pytest.fixture
    def cell(self):
        return InMemoryBackend().cell(COUNTER_REGION)

    @pytest.fixture
    def allocator(self, cell):
        return IdAllocator(cell)

    @pytest.mark.asyncio
    async def test_first_id_is_zero(self, allocator):
        assert await allocator.next_id() == 0

    @pytest.mark.asyncio
    async def test_ids_strictly_increasing(self, allocator):
        ids = [await allocator.next_id() for _ in range(20)]

        assert ids == list(range(20))
        assert len(set(ids)) == len(ids)

    @pytest.mark.asyncio
    async def test_counter_persisted_before_return(self, allocator, cell):
        """Counter is always greater than the last issued id."""
        issued = await allocator.next_id()
        assert cell.get() == issued + 1
        assert allocator.current() == issued + 1

    @pytest.mark.asyncio
    async def test_resumes_from_persisted_counter(self, cell):
        cell.set(57)
        assert await IdAllocator(cell).next_id() == 57

    @pytest.mark.asyncio
    async def test_concurrent_allocation_unique(self, allocator):
        ids = await asyncio.gather(*(allocator.next_id() for _ in range(50)))
        assert sorted(ids) == list(range(50))

    @pytest.mark.asyncio
    async def test_exhaustion(self, cell, allocator):
        cell.set(U64_MAX - 1)
        assert await allocator.next_id() == U64_MAX - 1

        with pytest.raises(IdSpaceExhaustedError):
            await allocator.next_id()

        assert cell.get() == U64_MAX

    @pytest.mark.asyncio
    async def test_storage_failure_issues_nothing(self):
        cell = FailingCell(5)
        allocator = IdAllocator(cell)

        with pytest.raises(StorageError):
            await allocator.next_id()

        assert cell.get() == 5
