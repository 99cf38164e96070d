"""
Operation handlers for MintDB.

RecordService composes the IdAllocator and RecordStore into the four
public operations: create, read, update and delete.

Invariants:
    - Only create allocates an identifier
    - Each operation performs at most one record mutation, as its last step
    - id and created_at are never modified after creation
    - updated_at >= created_at whenever updated_at is set

How to change safely:
    - Keep validation ahead of allocation and mutation
    - Do not add a second store mutation to any operation
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from .errors import NotFoundError
from .records.codec import MAX_RECORD_SIZE, check_payload
from .records.types import Record, RecordPayload
from .storage.base import COUNTER_REGION, RECORDS_REGION, StorageBackend
from .store.allocator import IdAllocator
from .store.record_store import RecordStore

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class RecordService:
    """The public record operations.

    The service holds no state of its own; allocator and store are
    injected, so independent instances never share data.

    Attributes:
        allocator: Identifier allocator
        store: Record store
        clock: Returns the current time in Unix nanoseconds

    Example:
        >>> service = RecordService.open(InMemoryBackend())
        >>> record = await service.create_record(payload)
        >>> await service.read_record(record.id)
    """

    def __init__(
        self,
        allocator: IdAllocator,
        store: RecordStore,
        clock: Clock = time.time_ns,
        backend: StorageBackend | None = None,
    ) -> None:
        self.allocator = allocator
        self.store = store
        self.clock = clock
        self._backend = backend

    @classmethod
    def open(
        cls,
        backend: StorageBackend,
        clock: Clock = time.time_ns,
        max_record_size: int = MAX_RECORD_SIZE,
    ) -> RecordService:
        """Build a service over the standard regions of a backend.

        Args:
            backend: Storage backend to open regions on
            clock: Time source in Unix nanoseconds
            max_record_size: Maximum encoded record size in bytes

        Returns:
            RecordService owning the backend
        """
        allocator = IdAllocator(backend.cell(COUNTER_REGION, initial=0))
        store = RecordStore(backend.map(RECORDS_REGION), max_record_size=max_record_size)
        logger.info(
            "Record service opened",
            extra={"next_id": allocator.current(), "records": store.len_records()},
        )
        return cls(allocator, store, clock=clock, backend=backend)

    def close(self) -> None:
        """Release the backend, if the service owns one."""
        if self._backend is not None:
            self._backend.close()
            self._backend = None
            logger.info("Record service closed")

    async def create_record(self, payload: RecordPayload) -> Record:
        """Create a new record from payload.

        Raises:
            RecordEncodingError: If the payload cannot be encoded
            RecordTooLargeError: If the payload would exceed the size bound
            StorageError: If allocation or the write fails
        """
        # Reject before allocating so a bad payload does not consume an id.
        check_payload(payload, self.store.max_record_size)

        record_id = await self.allocator.next_id()
        record = Record.from_payload(record_id, payload, created_at=self.clock())
        await self.store.insert(record)

        logger.debug("Created record", extra={"id": record.id})
        return record

    async def read_record(self, record_id: int) -> Record:
        """Get a record by ID.

        Raises:
            NotFoundError: If no record has this id
        """
        record = await self.store.get(record_id)
        if record is None:
            logger.debug("Record not found", extra={"id": record_id, "operation": "read"})
            raise NotFoundError(record_id, "read")
        return record

    async def update_record(self, record_id: int, payload: RecordPayload) -> Record:
        """Replace every mutable field of a record.

        Raises:
            NotFoundError: If no record has this id
            RecordEncodingError: If the payload cannot be encoded
            RecordTooLargeError: If the result would exceed the size bound
        """
        existing = await self.store.get(record_id)
        if existing is None:
            logger.debug("Record not found", extra={"id": record_id, "operation": "update"})
            raise NotFoundError(record_id, "update")

        # Clamp so a clock step backwards cannot break created_at <= updated_at.
        updated_at = max(self.clock(), existing.created_at)
        updated = existing.with_payload(payload, updated_at=updated_at)
        await self.store.insert(updated)

        logger.debug("Updated record", extra={"id": record_id})
        return updated

    async def delete_record(self, record_id: int) -> Record:
        """Delete a record, returning what was removed.

        Raises:
            NotFoundError: If no record has this id
        """
        removed = await self.store.remove(record_id)
        if removed is None:
            logger.debug("Record not found", extra={"id": record_id, "operation": "delete"})
            raise NotFoundError(record_id, "delete")

        logger.debug("Deleted record", extra={"id": record_id})
        return removed
