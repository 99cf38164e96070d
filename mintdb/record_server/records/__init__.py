"""
Record model and encoding for MintDB.

This module handles:
- The Record entity and its mutable RecordPayload
- Bounded-size byte encoding of records

Invariants:
    - id and created_at never change after creation
    - Encoded records never exceed MAX_RECORD_SIZE bytes
    - Encoding fails instead of truncating
"""

from .codec import MAX_RECORD_SIZE, U64_MAX, check_payload, decode_record, encode_record
from .types import Record, RecordPayload

__all__ = [
    "Record",
    "RecordPayload",
    "MAX_RECORD_SIZE",
    "U64_MAX",
    "encode_record",
    "decode_record",
    "check_payload",
]
