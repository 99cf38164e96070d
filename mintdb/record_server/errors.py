"""
Error types for the MintDB record server.

This module defines all exception types raised by the server:
- MintDbError: Base exception
- NotFoundError: Record identifier is absent from the store
- RecordEncodingError: Record cannot be encoded or decoded
- RecordTooLargeError: Encoded record exceeds the size bound
- StorageError: Durable storage failed

Invariants:
    - All errors inherit from MintDbError
    - Errors carry a stable code for programmatic handling
    - NotFoundError is definitive and never retried
"""

from __future__ import annotations

from typing import Any


class MintDbError(Exception):
    """Base exception for all MintDB errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "MINTDB_ERROR"
        self.details = details or {}


class NotFoundError(MintDbError):
    """Record not found.

    Raised by read, update and delete when the identifier
    is not present in the record store.
    """

    _MESSAGES = {
        "read": "A record with id={id} not found",
        "update": "Couldn't update a record with id={id}. Record not found",
        "delete": "Couldn't delete a record with id={id}. Record not found.",
    }

    def __init__(self, record_id: int, operation: str = "read") -> None:
        template = self._MESSAGES.get(operation, self._MESSAGES["read"])
        super().__init__(
            template.format(id=record_id),
            code="NOT_FOUND",
            details={"id": record_id, "operation": operation},
        )
        self.record_id = record_id
        self.operation = operation


class RecordEncodingError(MintDbError):
    """Record could not be encoded or decoded."""

    def __init__(
        self,
        message: str,
        code: str = "INVALID_RECORD",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class RecordTooLargeError(RecordEncodingError):
    """Encoded record exceeds the maximum serialized size.

    Attributes:
        size: Encoded size in bytes
        max_size: Configured bound in bytes
    """

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(
            f"Encoded record is {size} bytes, exceeds maximum of {max_size} bytes",
            code="RECORD_TOO_LARGE",
            details={"size": size, "max_size": max_size},
        )
        self.size = size
        self.max_size = max_size


class StorageError(MintDbError):
    """Durable storage operation failed.

    Fatal to the operation that triggered it. The failed
    operation leaves no partial state behind.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code="STORAGE_ERROR", details=details)


class StorageCapacityError(StorageError):
    """Value does not fit in a storage region."""

    pass


class IdSpaceExhaustedError(StorageError):
    """Identifier counter reached the end of the u64 range."""

    pass
