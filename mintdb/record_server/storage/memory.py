"""
In-memory storage implementation for testing.

This module provides a simple in-memory backend for:
- Unit tests
- Local development without a data directory

Invariants:
    - All data is lost when the backend object is dropped
    - Provides the same value semantics as the SQLite backend
    - Regions are independent of each other

How to change safely:
    - Keep behavior identical to SqliteBackend from the caller's view
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..errors import StorageCapacityError, StorageError

logger = logging.getLogger(__name__)

_U64_MAX = 2**64 - 1


def _check_u64(value: int) -> None:
    if value < 0 or value > _U64_MAX:
        raise StorageError(f"Value outside the u64 range: {value}", details={"value": value})


class InMemoryCell:
    """In-memory implementation of DurableCell."""

    def __init__(self, initial: int = 0) -> None:
        self._value = initial

    def get(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        _check_u64(value)
        self._value = value

    def update(self, advance: Callable[[int], int]) -> int:
        current = self._value
        self.set(advance(current))
        return current


class InMemoryKeyValueStore:
    """In-memory implementation of DurableKeyValueStore.

    Values are stored as immutable bytes, so callers always
    get copies rather than references into the store.
    """

    def __init__(self, max_value_size: int | None = None) -> None:
        self.max_value_size = max_value_size
        self._entries: dict[int, bytes] = {}

    def get(self, key: int) -> bytes | None:
        return self._entries.get(key)

    def insert(self, key: int, value: bytes) -> bytes | None:
        _check_u64(key)
        if self.max_value_size is not None and len(value) > self.max_value_size:
            raise StorageCapacityError(
                f"Value of {len(value)} bytes exceeds region bound of {self.max_value_size}",
                details={"key": key, "size": len(value)},
            )
        previous = self._entries.get(key)
        self._entries[key] = bytes(value)
        return previous

    def remove(self, key: int) -> bytes | None:
        return self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class InMemoryBackend:
    """In-memory implementation of StorageBackend.

    Opening the same region twice returns the same object, so
    allocator and store instances built on one backend share state.

    Example:
        >>> backend = InMemoryBackend()
        >>> counter = backend.cell(COUNTER_REGION)
        >>> counter.set(counter.get() + 1)
    """

    def __init__(self, max_value_size: int | None = None) -> None:
        self.max_value_size = max_value_size
        self._cells: dict[int, InMemoryCell] = {}
        self._maps: dict[int, InMemoryKeyValueStore] = {}

    def cell(self, region: int, initial: int = 0) -> InMemoryCell:
        if region in self._maps:
            raise StorageError(f"Region {region} is already a map")
        if region not in self._cells:
            self._cells[region] = InMemoryCell(initial)
        return self._cells[region]

    def map(self, region: int) -> InMemoryKeyValueStore:
        if region in self._cells:
            raise StorageError(f"Region {region} is already a cell")
        if region not in self._maps:
            self._maps[region] = InMemoryKeyValueStore(self.max_value_size)
        return self._maps[region]

    def close(self) -> None:
        logger.debug("InMemoryBackend closed")
