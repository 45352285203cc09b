"""SQLite-backed cursor store (mailbox -> last acknowledged history id)."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, Optional

from loguru import logger

from gmailrelay.application.ports.cursor_store import CursorStore


class SQLiteCursorStore(CursorStore):
    """Durable key-value store for per-mailbox history cursors."""

    def __init__(self, db_path: str | Path = "/app/data/cursors.db"):
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.executescript("""
                PRAGMA journal_mode=WAL;

                CREATE TABLE IF NOT EXISTS mailbox_cursors (
                    mailbox_id TEXT PRIMARY KEY,
                    cursor TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            logger.info(f"Cursor store initialized at {self.db_path}")

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, mailbox_id: str) -> Optional[str]:
        """Return the stored cursor for a mailbox, or None if never seen."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT cursor FROM mailbox_cursors WHERE mailbox_id = ?",
                (mailbox_id,),
            ).fetchone()
        return row["cursor"] if row else None

    def put(self, mailbox_id: str, cursor: str) -> None:
        """Insert or overwrite the cursor for a mailbox."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """INSERT INTO mailbox_cursors (mailbox_id, cursor, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(mailbox_id) DO UPDATE SET
                       cursor = excluded.cursor,
                       updated_at = excluded.updated_at""",
                (mailbox_id, cursor, now),
            )
        logger.debug(f"Saved cursor for {mailbox_id}: {cursor}")

# Singleton instance
_store: SQLiteCursorStore | None = None


def get_cursor_store(db_path: str | None = None) -> SQLiteCursorStore:
    """Get or create the SQLite cursor store singleton."""
    global _store
    if _store is None:
        from gmailrelay.infrastructure.settings import get_settings
        _store = SQLiteCursorStore(db_path=db_path or get_settings().cursor_db_path)
    return _store
