"""
SQLite persistence handle for the EAV store.

This module provides the reference implementation of the Handle protocol
on top of the standard library sqlite3 driver, plus the table bootstrap
used by deployments and tests.

Invariants:
    - Connections run in autocommit mode; transactions are explicit
    - PRAGMA foreign_keys is ON unless disabled in settings, since
      forgetting an attribute relies on ON DELETE CASCADE
    - init_tables() is idempotent

How to change safely:
    - Table changes must stay compatible with existing databases
    - Keep value columns in the order of datom.VALUE_COLUMNS

Table schema:
    eav_schema:
        - store_id INTEGER
        - name TEXT
        - datatype INTEGER (DataType code)
        - PRIMARY KEY (store_id, name)

    eav_datoms:
        - store_id INTEGER
        - entity_id TEXT
        - attribute_name TEXT
        - string_value TEXT NULL
        - number_value REAL NULL
        - boolean_value INTEGER NULL
        - time_value TEXT NULL (ISO-8601)
        - PRIMARY KEY (store_id, entity_id, attribute_name)
        - FOREIGN KEY (store_id, attribute_name)
              REFERENCES eav_schema(store_id, name) ON DELETE CASCADE
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from .base import Params

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


class SqliteStatement:
    """A statement bound to a fixed SQL text.

    sqlite3 keeps compiled statements in a per-connection cache keyed by
    SQL text, so re-executing the same text reuses the compiled form.
    """

    def __init__(self, conn: sqlite3.Connection, sql: str) -> None:
        self._conn = conn
        self.sql = sql

    def execute(self, params: Params = ()) -> sqlite3.Cursor:
        return self._conn.execute(self.sql, tuple(params))


class SqliteHandle:
    """Handle protocol implementation over a sqlite3 connection.

    Example:
        >>> handle = connect(":memory:")
        >>> init_tables(handle)
        >>> with handle.transaction():
        ...     await store.update("e1", {"count": 1})
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        return self.conn.execute(sql, tuple(params))

    def query(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.conn.execute(sql, tuple(params)).fetchall()

    def prepare(self, sql: str) -> SqliteStatement:
        return SqliteStatement(self.conn, sql)

    @contextmanager
    def transaction(self) -> Iterator[SqliteHandle]:
        """Run the enclosed operations in a single transaction.

        Commits on normal exit, rolls back and re-raises on error.
        """
        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield self
        except Exception:
            self.conn.execute("ROLLBACK")
            raise
        self.conn.execute("COMMIT")

    def close(self) -> None:
        self.conn.close()


def connect(
    database_path: str = ":memory:",
    busy_timeout_ms: int = 5000,
    wal_mode: bool = True,
    foreign_keys: bool = True,
) -> SqliteHandle:
    """Open a SQLite database and wrap it in a handle.

    Args:
        database_path: Database file path, or ":memory:"
        busy_timeout_ms: SQLite busy timeout
        wal_mode: Enable SQLite WAL journal mode
        foreign_keys: Enforce foreign keys (required for cascades)

    Returns:
        Configured SqliteHandle
    """
    if database_path != ":memory:":
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        database_path,
        timeout=busy_timeout_ms / 1000.0,
        isolation_level=None,  # Autocommit by default, explicit transactions
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row

    conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms}")
    if wal_mode and database_path != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.execute(f"PRAGMA foreign_keys = {'ON' if foreign_keys else 'OFF'}")
    if not foreign_keys:
        logger.warning(
            "Foreign keys disabled; forgetting attributes will not remove their datoms"
        )

    logger.debug("Opened SQLite database", extra={"database_path": database_path})
    return SqliteHandle(conn)


def connect_from_settings(settings: Settings) -> SqliteHandle:
    """Open the database described by settings."""
    return connect(
        settings.database_path,
        busy_timeout_ms=settings.busy_timeout_ms,
        wal_mode=settings.wal_mode,
        foreign_keys=settings.foreign_keys,
    )


def init_tables(handle: SqliteHandle) -> None:
    """Create the schema and datom tables if they do not exist."""
    handle.execute("""
        CREATE TABLE IF NOT EXISTS eav_schema (
            store_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            datatype INTEGER NOT NULL,
            PRIMARY KEY (store_id, name)
        )
    """)
    handle.execute("""
        CREATE TABLE IF NOT EXISTS eav_datoms (
            store_id INTEGER NOT NULL,
            entity_id TEXT NOT NULL,
            attribute_name TEXT NOT NULL,
            string_value TEXT NULL,
            number_value REAL NULL,
            boolean_value INTEGER NULL,
            time_value TEXT NULL,
            PRIMARY KEY (store_id, entity_id, attribute_name),
            FOREIGN KEY (store_id, attribute_name)
                REFERENCES eav_schema(store_id, name) ON DELETE CASCADE
        )
    """)
    logger.info("Initialized EAV tables")
