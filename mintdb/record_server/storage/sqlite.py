"""
SQLite storage backend for MintDB.

This module manages a single SQLite database file that stores every
durable region:
- Cells (one 8-byte big-endian integer per region)
- Maps (integer key -> bytes value per region)

Invariants:
    - One SQLite file per backend
    - Every mutation is a single transaction
    - A region is either a cell or a map, never both
    - Keys are stored shifted by -2**63 so the full u64 range
      fits SQLite's signed INTEGER while keeping key order

How to change safely:
    - Schema migrations must be backward compatible
    - Never change the key shift or the cell byte layout in place
    - Use transactions for all write operations

Table schema:
    regions:
        - region INTEGER PRIMARY KEY
        - kind TEXT ('cell' or 'map')
        - created_at INTEGER (Unix ms)

    cells:
        - region INTEGER PRIMARY KEY
        - value BLOB (8 bytes, big-endian)

    entries:
        - region INTEGER
        - key INTEGER (u64 key - 2**63)
        - value BLOB
        - PRIMARY KEY (region, key)
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from ..errors import StorageCapacityError, StorageError

logger = logging.getLogger(__name__)

_KEY_SHIFT = 2**63
_U64_MAX = 2**64 - 1


def _to_stored_key(key: int) -> int:
    if key < 0 or key > _U64_MAX:
        raise StorageError(f"Key outside the u64 range: {key}", details={"key": key})
    return key - _KEY_SHIFT


def _encode_counter(value: int) -> bytes:
    if value < 0 or value > _U64_MAX:
        raise StorageError(f"Cell value outside the u64 range: {value}", details={"value": value})
    return value.to_bytes(8, "big")


class SqliteBackend:
    """SQLite implementation of StorageBackend.

    Thread safety:
        Each operation opens its own connection.
        SQLite serializes writers via BEGIN IMMEDIATE.

    Example:
        >>> backend = SqliteBackend("/var/lib/mintdb")
        >>> counter = backend.cell(COUNTER_REGION)
        >>> records = backend.map(RECORDS_REGION)
    """

    SCHEMA_VERSION = 1

    def __init__(
        self,
        data_dir: str,
        db_filename: str = "mintdb.db",
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
        max_value_size: int | None = None,
    ) -> None:
        """Initialize the backend and create the schema if needed.

        Args:
            data_dir: Directory for the SQLite database file
            db_filename: Database file name inside data_dir
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
            max_value_size: Maximum size of a map value in bytes
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_filename
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms
        self.max_value_size = max_value_size
        self._closed = False

        with self.connection() as conn:
            self._create_schema(conn)
        logger.info(f"Opened SQLite storage: {self.db_path}")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Get a configured database connection.

        Yields:
            SQLite connection in autocommit mode

        Raises:
            StorageError: If the backend is closed, the file cannot be opened,
                or any sqlite3 call fails
        """
        if self._closed:
            raise StorageError("Storage backend is closed")

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.busy_timeout_ms / 1000.0,
                isolation_level=None,  # Autocommit by default, explicit transactions
            )
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open storage at {self.db_path}: {e}")

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = FULL")
            yield conn
        except sqlite3.Error as e:
            raise StorageError(f"Storage operation failed: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside a single write transaction.

        Rolls back on any exception. sqlite3 errors are re-raised
        as StorageError.
        """
        with self.connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise StorageError(f"Storage transaction failed: {e}") from e
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        """Create database schema."""
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS regions (
                region INTEGER PRIMARY KEY,
                kind TEXT NOT NULL,
                created_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS cells (
                region INTEGER PRIMARY KEY,
                value BLOB NOT NULL
            );

            CREATE TABLE IF NOT EXISTS entries (
                region INTEGER NOT NULL,
                key INTEGER NOT NULL,
                value BLOB NOT NULL,
                PRIMARY KEY (region, key)
            );

            INSERT OR IGNORE INTO schema_version (version, applied_at)
            VALUES (1, strftime('%s', 'now') * 1000);
        """)

    def _claim_region(self, conn: sqlite3.Connection, region: int, kind: str) -> bool:
        """Record region's kind, returning True if it was newly claimed."""
        row = conn.execute("SELECT kind FROM regions WHERE region = ?", (region,)).fetchone()
        if row is None:
            conn.execute(
                "INSERT INTO regions (region, kind, created_at) VALUES (?, ?, ?)",
                (region, kind, int(time.time() * 1000)),
            )
            return True
        if row[0] != kind:
            raise StorageError(
                f"Region {region} is already a {row[0]}",
                details={"region": region, "kind": row[0]},
            )
        return False

    def cell(self, region: int, initial: int = 0) -> SqliteCell:
        with self.transaction() as conn:
            if self._claim_region(conn, region, "cell"):
                conn.execute(
                    "INSERT INTO cells (region, value) VALUES (?, ?)",
                    (region, _encode_counter(initial)),
                )
                logger.info(
                    "Initialized cell region",
                    extra={"region": region, "initial": initial},
                )
        return SqliteCell(self, region)

    def map(self, region: int) -> SqliteKeyValueStore:
        with self.transaction() as conn:
            if self._claim_region(conn, region, "map"):
                logger.info("Initialized map region", extra={"region": region})
        return SqliteKeyValueStore(self, region, self.max_value_size)

    def close(self) -> None:
        self._closed = True
        logger.info(f"Closed SQLite storage: {self.db_path}")


class SqliteCell:
    """SQLite implementation of DurableCell."""

    def __init__(self, backend: SqliteBackend, region: int) -> None:
        self.backend = backend
        self.region = region

    def get(self) -> int:
        with self.backend.connection() as conn:
            row = conn.execute(
                "SELECT value FROM cells WHERE region = ?", (self.region,)
            ).fetchone()
        if row is None:
            raise StorageError(f"Cell region {self.region} is missing")
        return int.from_bytes(row[0], "big")

    def set(self, value: int) -> None:
        encoded = _encode_counter(value)
        with self.backend.transaction() as conn:
            conn.execute(
                "UPDATE cells SET value = ? WHERE region = ?",
                (encoded, self.region),
            )

    def update(self, advance: Callable[[int], int]) -> int:
        """Replace the value with advance(value) in one write transaction.

        Read and write share a BEGIN IMMEDIATE transaction, so writers in
        other processes on the same file cannot interleave with it.
        """
        with self.backend.transaction() as conn:
            row = conn.execute(
                "SELECT value FROM cells WHERE region = ?", (self.region,)
            ).fetchone()
            if row is None:
                raise StorageError(f"Cell region {self.region} is missing")
            current = int.from_bytes(row[0], "big")
            conn.execute(
                "UPDATE cells SET value = ? WHERE region = ?",
                (_encode_counter(advance(current)), self.region),
            )
        return current


class SqliteKeyValueStore:
    """SQLite implementation of DurableKeyValueStore."""

    def __init__(
        self,
        backend: SqliteBackend,
        region: int,
        max_value_size: int | None = None,
    ) -> None:
        self.backend = backend
        self.region = region
        self.max_value_size = max_value_size

    def get(self, key: int) -> bytes | None:
        with self.backend.connection() as conn:
            row = conn.execute(
                "SELECT value FROM entries WHERE region = ? AND key = ?",
                (self.region, _to_stored_key(key)),
            ).fetchone()
        return bytes(row[0]) if row else None

    def insert(self, key: int, value: bytes) -> bytes | None:
        stored_key = _to_stored_key(key)
        if self.max_value_size is not None and len(value) > self.max_value_size:
            raise StorageCapacityError(
                f"Value of {len(value)} bytes exceeds region bound of {self.max_value_size}",
                details={"key": key, "size": len(value)},
            )

        with self.backend.transaction() as conn:
            row = conn.execute(
                "SELECT value FROM entries WHERE region = ? AND key = ?",
                (self.region, stored_key),
            ).fetchone()
            conn.execute(
                "INSERT OR REPLACE INTO entries (region, key, value) VALUES (?, ?, ?)",
                (self.region, stored_key, value),
            )
        return bytes(row[0]) if row else None

    def remove(self, key: int) -> bytes | None:
        stored_key = _to_stored_key(key)
        with self.backend.transaction() as conn:
            row = conn.execute(
                "SELECT value FROM entries WHERE region = ? AND key = ?",
                (self.region, stored_key),
            ).fetchone()
            if row is None:
                return None
            conn.execute(
                "DELETE FROM entries WHERE region = ? AND key = ?",
                (self.region, stored_key),
            )
        return bytes(row[0])

    def __len__(self) -> int:
        with self.backend.connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM entries WHERE region = ?", (self.region,)
            ).fetchone()
        return row[0]
