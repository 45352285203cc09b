"""Store implementations."""

from gmailrelay.infrastructure.stores.memory_cursor_store import InMemoryCursorStore

__all__ = [
    "InMemoryCursorStore",
]
