"""
Durable identifier allocator.

Issues strictly increasing u64 identifiers backed by a DurableCell.
The increment is persisted before the identifier is handed out, so
a crash can never cause an identifier to be issued twice.
"""

from __future__ import annotations

import asyncio
import logging

from ..errors import IdSpaceExhaustedError
from ..records.codec import U64_MAX
from ..storage.base import DurableCell

logger = logging.getLogger(__name__)


def _advance(counter: int) -> int:
    # The counter is a u64 too, so U64_MAX itself can never be issued.
    if counter >= U64_MAX:
        raise IdSpaceExhaustedError("Identifier space exhausted", details={"counter": counter})
    return counter + 1


class IdAllocator:
    """Issues unique, strictly increasing identifiers.

    The cell always holds the next identifier to issue, which is
    strictly greater than every identifier issued so far.

    Example:
        >>> allocator = IdAllocator(backend.cell(COUNTER_REGION))
        >>> await allocator.next_id()
        0
        >>> await allocator.next_id()
        1
    """

    def __init__(self, cell: DurableCell) -> None:
        self._cell = cell
        self._lock = asyncio.Lock()

    async def next_id(self) -> int:
        """Issue the next identifier.

        Returns:
            The identifier, persisted as used before returning

        Raises:
            IdSpaceExhaustedError: If every u64 identifier has been issued
            StorageError: If the increment cannot be persisted
        """
        async with self._lock:
            current = self._cell.update(_advance)

        logger.debug("Allocated id", extra={"id": current})
        return current

    def current(self) -> int:
        """Return the next identifier that will be issued."""
        return self._cell.get()
