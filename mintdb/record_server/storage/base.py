"""
Base protocols for durable storage.

This module defines the DurableCell, DurableKeyValueStore and
StorageBackend protocols that all backends must implement.

Invariants:
    - Keys and cell values are unsigned 64-bit integers
    - Map values are opaque bytes
    - Every mutation either fully lands or has no effect

How to change safely:
    - Protocol changes require updating all implementations
    - Keep region numbering stable across releases
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import StorageConfig

logger = logging.getLogger(__name__)

# Region holding the identifier counter
COUNTER_REGION = 0

# Region holding the identifier -> record map
RECORDS_REGION = 1


@runtime_checkable
class DurableCell(Protocol):
    """A single durable integer value.

    Durability contract:
        set() returns only after the value is durably stored.
    """

    @abstractmethod
    def get(self) -> int:
        """Return the current value."""
        ...

    @abstractmethod
    def set(self, value: int) -> None:
        """Durably replace the value.

        Raises:
            StorageError: If the value cannot be persisted
        """
        ...

    @abstractmethod
    def update(self, advance: Callable[[int], int]) -> int:
        """Atomically replace the value with advance(value).

        Exceptions raised by advance leave the value unchanged.

        Returns:
            The value before the update
        """
        ...


@runtime_checkable
class DurableKeyValueStore(Protocol):
    """A durable map from integer keys to byte values.

    Durability contract:
        insert() and remove() return only after the change is durable.
    """

    @abstractmethod
    def get(self, key: int) -> bytes | None:
        """Return the value for key, or None."""
        ...

    @abstractmethod
    def insert(self, key: int, value: bytes) -> bytes | None:
        """Store value under key, returning the previous value if any.

        Raises:
            StorageCapacityError: If value exceeds the region's bound
            StorageError: If the write fails
        """
        ...

    @abstractmethod
    def remove(self, key: int) -> bytes | None:
        """Delete key, returning the removed value or None if absent."""
        ...

    @abstractmethod
    def __len__(self) -> int: ...


@runtime_checkable
class StorageBackend(Protocol):
    """A set of numbered durable regions."""

    @abstractmethod
    def cell(self, region: int, initial: int = 0) -> DurableCell:
        """Open the cell in region, initializing it on first use."""
        ...

    @abstractmethod
    def map(self, region: int) -> DurableKeyValueStore:
        """Open the map in region."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release backend resources."""
        ...


def create_storage_backend(config: StorageConfig) -> StorageBackend:
    """Factory function to create a storage backend from configuration.

    Args:
        config: Storage configuration

    Returns:
        Appropriate StorageBackend implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import StorageKind
    from .memory import InMemoryBackend
    from .sqlite import SqliteBackend

    if config.backend == StorageKind.SQLITE:
        return SqliteBackend(
            config.data_dir,
            db_filename=config.db_filename,
            wal_mode=config.wal_mode,
            busy_timeout_ms=config.busy_timeout_ms,
            max_value_size=config.max_record_size,
        )
    elif config.backend == StorageKind.MEMORY:
        logger.warning("Using in-memory storage; data will not survive restart")
        return InMemoryBackend(max_value_size=config.max_record_size)
    else:
        raise ValueError(f"Unsupported storage backend: {config.backend}")
