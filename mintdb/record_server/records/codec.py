"""
Bounded-size record encoding.

Records are persisted as compact UTF-8 JSON with sorted keys. The
encoded form of any stored record is at most MAX_RECORD_SIZE bytes.

Invariants:
    - encode_record never truncates; oversize input raises RecordTooLargeError
    - Integer fields must lie in the u64 range
    - decode_record(encode_record(r)) == r

How to change safely:
    - Stored bytes outlive the code; new fields need defaults in decode
    - Raising MAX_RECORD_SIZE is safe, lowering it can strand stored records
"""

from __future__ import annotations

import json
import logging

from ..errors import RecordEncodingError, RecordTooLargeError
from .types import Record, RecordPayload

logger = logging.getLogger(__name__)

# Maximum encoded size of a single record in bytes
MAX_RECORD_SIZE = 1024

U64_MAX = 2**64 - 1

_STRING_FIELDS = ("title", "creator", "collection", "external_reference")
_U64_FIELDS = ("id", "price", "created_at")


def _check_u64(name: str, value: object) -> None:
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        raise RecordEncodingError(
            f"Field '{name}' must be an integer, got {type(value).__name__}",
            details={"field": name},
        )
    if value < 0 or value > U64_MAX:
        raise RecordEncodingError(
            f"Field '{name}' is outside the u64 range: {value}",
            details={"field": name},
        )


def _check_fields(record: Record) -> None:
    for name in _STRING_FIELDS:
        value = getattr(record, name)
        if not isinstance(value, str):
            raise RecordEncodingError(
                f"Field '{name}' must be a string, got {type(value).__name__}",
                details={"field": name},
            )
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise RecordEncodingError(
                f"Field '{name}' is not valid UTF-8 text: {e.reason}",
                details={"field": name},
            ) from e
    for name in _U64_FIELDS:
        _check_u64(name, getattr(record, name))
    if record.updated_at is not None:
        _check_u64("updated_at", record.updated_at)


def encode_record(record: Record, max_size: int = MAX_RECORD_SIZE) -> bytes:
    """Encode a record to bytes.

    Args:
        record: Record to encode
        max_size: Maximum allowed encoded size in bytes

    Returns:
        Encoded record

    Raises:
        RecordEncodingError: If a field has the wrong type or range
        RecordTooLargeError: If the encoding exceeds max_size
    """
    _check_fields(record)
    data = json.dumps(
        record.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    if len(data) > max_size:
        raise RecordTooLargeError(len(data), max_size)
    return data


def decode_record(data: bytes) -> Record:
    """Decode bytes produced by encode_record.

    Raises:
        RecordEncodingError: If the bytes are not a valid record
    """
    try:
        return Record.from_dict(json.loads(data.decode("utf-8")))
    except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError) as e:
        raise RecordEncodingError(f"Failed to decode record: {e}")


def check_payload(payload: RecordPayload, max_size: int = MAX_RECORD_SIZE) -> None:
    """Validate that any record built from payload can be stored.

    Encodes a worst-case record (largest id and timestamps) so that a
    payload accepted here can never fail encoding later, whatever id
    and clock values it ends up with.

    Raises:
        RecordEncodingError: If a field has the wrong type or range
        RecordTooLargeError: If the worst-case encoding exceeds max_size
    """
    worst_case = Record.from_payload(U64_MAX, payload, U64_MAX).with_payload(payload, U64_MAX)
    encode_record(worst_case, max_size)
