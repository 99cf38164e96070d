"""
Record types for MintDB.

A Record describes one minted asset. The store owns every Record;
handlers work on copies and write them back whole.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any


@dataclass(frozen=True)
class RecordPayload:
    """Mutable fields of a record, as supplied by callers.

    Attributes:
        title: Asset title
        creator: Asset creator (artist)
        collection: Collection the asset belongs to (album)
        external_reference: Opaque locator, e.g. a metadata URL
        price: Non-negative integer price
    """

    title: str
    creator: str
    collection: str
    external_reference: str
    price: int


@dataclass(frozen=True)
class Record:
    """A stored record.

    Attributes:
        id: Identifier issued by the allocator
        title: Asset title
        creator: Asset creator
        collection: Collection name
        external_reference: Opaque locator
        price: Non-negative integer price
        created_at: Creation timestamp (Unix ns)
        updated_at: Last update timestamp (Unix ns), None until first update
    """

    id: int
    title: str
    creator: str
    collection: str
    external_reference: str
    price: int
    created_at: int
    updated_at: int | None = None

    @classmethod
    def from_payload(cls, record_id: int, payload: RecordPayload, created_at: int) -> Record:
        """Build a fresh record from a payload."""
        return cls(
            id=record_id,
            title=payload.title,
            creator=payload.creator,
            collection=payload.collection,
            external_reference=payload.external_reference,
            price=payload.price,
            created_at=created_at,
            updated_at=None,
        )

    def with_payload(self, payload: RecordPayload, updated_at: int) -> Record:
        """Return a copy with every mutable field replaced.

        id and created_at are carried over unchanged.
        """
        return replace(
            self,
            title=payload.title,
            creator=payload.creator,
            collection=payload.collection,
            external_reference=payload.external_reference,
            price=payload.price,
            updated_at=updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Record:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            title=data["title"],
            creator=data["creator"],
            collection=data["collection"],
            external_reference=data["external_reference"],
            price=data["price"],
            created_at=data["created_at"],
            updated_at=data.get("updated_at"),
        )
