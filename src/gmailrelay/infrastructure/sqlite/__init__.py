"""SQLite infrastructure for cursor storage."""

from gmailrelay.infrastructure.sqlite.cursor_store import (
    SQLiteCursorStore,
    get_cursor_store,
)

__all__ = [
    "SQLiteCursorStore",
    "get_cursor_store",
]
