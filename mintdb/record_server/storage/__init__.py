"""
Durable storage abstraction for MintDB.

This module provides a pluggable storage backend interface supporting:
- SQLite (production)
- In-memory (for testing)

A backend exposes numbered regions. Each region is either a single
integer cell or an integer-keyed map of byte values.

Invariants:
    - A successful set/insert/remove is visible to later reads
    - SQLite writes survive process restart
    - Failed writes leave no partial state

How to change safely:
    - New backends must implement the StorageBackend protocol
    - Region numbers are part of the persisted layout
"""

from .base import (
    COUNTER_REGION,
    RECORDS_REGION,
    DurableCell,
    DurableKeyValueStore,
    StorageBackend,
    create_storage_backend,
)
from .memory import InMemoryBackend, InMemoryCell, InMemoryKeyValueStore
from .sqlite import SqliteBackend, SqliteCell, SqliteKeyValueStore

__all__ = [
    # Protocols and layout
    "DurableCell",
    "DurableKeyValueStore",
    "StorageBackend",
    "COUNTER_REGION",
    "RECORDS_REGION",
    # Factory
    "create_storage_backend",
    # Implementations
    "InMemoryBackend",
    "InMemoryCell",
    "InMemoryKeyValueStore",
    "SqliteBackend",
    "SqliteCell",
    "SqliteKeyValueStore",
]
