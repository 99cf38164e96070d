"""
Store module for MintDB - identifier allocation and record persistence.

This module handles:
- Durable identifier allocation
- Durable identifier -> record mapping

Invariants:
    - Allocator read-increment-write is serialized
    - Record mutations are serialized per store instance
    - Stored records are always decodable

How to change safely:
    - Never persist a counter value lower than the current one
    - Encode before writing so oversize records never reach storage
"""

from .allocator import IdAllocator
from .record_store import RecordStore

__all__ = [
    "IdAllocator",
    "RecordStore",
]
