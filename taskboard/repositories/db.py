# Rev 0.1.0

"""SQLite connection & migration runner (Rev 0.1.0)
- WAL mode (file databases), autocommit
- Applies SQL files in taskboard/data/migrations in lexical order
- Tracks applied files in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)
"""
from __future__ import annotations
import sqlite3
from pathlib import Path
from datetime import datetime, timezone

from taskboard.utils.logging_setup import get_logger
from taskboard.utils.paths import MIGRATIONS_DIR

MEMORY = ":memory:"


class Database:
    def __init__(self, path: Path | str) -> None:
        self._log = get_logger("Database")
        self.path = str(path)
        if self.path != MEMORY:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        if self.path != MEMORY:
            self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        self._log.info("SQLite open %s", self.path)

    @property
    def in_memory(self) -> bool:
        return self.path == MEMORY

    def close(self) -> None:
        try:
            self.conn.close()
        except sqlite3.Error:
            self._log.warning("SQLite close failed for %s", self.path, exc_info=True)

    def applied(self) -> set[str]:
        rows = self.conn.execute("SELECT filename FROM schema_migrations").fetchall()
        return {r[0] for r in rows}

    def apply_sql(self, sql: str) -> None:
        self.conn.executescript(sql)

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        applied = self.applied()
        to_apply = [p for p in sorted(migrations_dir.glob("*.sql")) if p.name not in applied]
        for p in to_apply:
            sql = p.read_text(encoding="utf-8")
            self.apply_sql(sql)
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, applied_at) VALUES(?, ?)",
                (p.name, datetime.now(timezone.utc).isoformat()),
            )
        if to_apply:
            self._log.info("Applied migrations: %s", ", ".join(p.name for p in to_apply))
        return [p.name for p in to_apply]
