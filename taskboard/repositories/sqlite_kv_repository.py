# Rev 0.1.0
from __future__ import annotations

import sqlite3
from typing import Any, List, Optional, Union


class SQLiteKeyValueRepository:
    """
    Durable string key-value store, scoped like a browser origin.

    Schema expectation (0001_kv_store.sql):

      kv_store(
        scope TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        updated_at_utc TEXT NOT NULL,
        PRIMARY KEY (scope, key)
      )

    Errors from sqlite3 propagate; failure isolation is the adapter's job
    (services.persistent_store).
    """

    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any], scope: str = "default"):
        self._db_or_conn = db_or_conn
        self.scope = scope

    # -------------------------
    # Connection handling
    # -------------------------
    def _conn(self) -> sqlite3.Connection:
        if isinstance(self._db_or_conn, sqlite3.Connection):
            return self._db_or_conn
        if hasattr(self._db_or_conn, "conn") and isinstance(self._db_or_conn.conn, sqlite3.Connection):
            return self._db_or_conn.conn
        raise RuntimeError(
            "SQLiteKeyValueRepository: could not obtain sqlite3.Connection "
            "(expected .conn on wrapper, or a raw Connection)."
        )

    # -------------------------
    # Queries
    # -------------------------
    def get_item(self, key: str) -> Optional[str]:
        row = self._conn().execute(
            "SELECT value FROM kv_store WHERE scope = ? AND key = ?",
            (self.scope, key),
        ).fetchone()
        return row[0] if row else None

    def keys(self) -> List[str]:
        rows = self._conn().execute(
            "SELECT key FROM kv_store WHERE scope = ? ORDER BY key",
            (self.scope,),
        ).fetchall()
        return [r[0] for r in rows]

    # -------------------------
    # Commands
    # -------------------------
    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"kv_store values are text, got {type(value).__name__}")
        self._conn().execute(
            """
            INSERT INTO kv_store(scope, key, value, updated_at_utc)
            VALUES (?, ?, ?, datetime('now'))
            ON CONFLICT(scope, key) DO UPDATE
               SET value = excluded.value,
                   updated_at_utc = excluded.updated_at_utc
            """,
            (self.scope, key, value),
        )

    def remove_item(self, key: str) -> bool:
        cur = self._conn().execute(
            "DELETE FROM kv_store WHERE scope = ? AND key = ?",
            (self.scope, key),
        )
        return cur.rowcount > 0
