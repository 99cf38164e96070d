"""
Durable identifier -> record store.

Wraps a DurableKeyValueStore of encoded records. Records are encoded
before any write, so a record that fails encoding never reaches
storage and the previous value stays intact.
"""

from __future__ import annotations

import asyncio
import logging

from ..records.codec import MAX_RECORD_SIZE, decode_record, encode_record
from ..records.types import Record
from ..storage.base import DurableKeyValueStore

logger = logging.getLogger(__name__)


class RecordStore:
    """Record persistence with whole-value semantics.

    Thread safety:
        Mutations are serialized with an asyncio lock, so an update
        and a delete on the same id are linearized.

    Example:
        >>> store = RecordStore(backend.map(RECORDS_REGION))
        >>> await store.insert(record)
        >>> await store.get(record.id)
    """

    def __init__(
        self,
        entries: DurableKeyValueStore,
        max_record_size: int = MAX_RECORD_SIZE,
    ) -> None:
        """Initialize the record store.

        Args:
            entries: Durable map holding encoded records
            max_record_size: Maximum encoded record size in bytes
        """
        self._entries = entries
        self.max_record_size = max_record_size
        self._lock = asyncio.Lock()

    async def get(self, record_id: int) -> Record | None:
        """Get a record by ID.

        Returns:
            A copy of the stored record, or None if absent
        """
        data = self._entries.get(record_id)
        if data is None:
            return None
        return decode_record(data)

    async def insert(self, record: Record) -> None:
        """Write record under record.id, replacing any prior value.

        Raises:
            RecordEncodingError: If the record cannot be encoded
            RecordTooLargeError: If the encoding exceeds max_record_size
            StorageError: If the write fails
        """
        data = encode_record(record, self.max_record_size)

        async with self._lock:
            self._entries.insert(record.id, data)

        logger.debug(
            "Stored record",
            extra={"id": record.id, "size": len(data)},
        )

    async def remove(self, record_id: int) -> Record | None:
        """Delete a record.

        Returns:
            The removed record, or None if it was not present
        """
        async with self._lock:
            data = self._entries.remove(record_id)

        if data is None:
            return None

        logger.debug("Removed record", extra={"id": record_id})
        return decode_record(data)

    async def contains(self, record_id: int) -> bool:
        """Check whether a record exists."""
        return self._entries.get(record_id) is not None

    def len_records(self) -> int:
        """Number of stored records."""
        return len(self._entries)
