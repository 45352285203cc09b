"""In-memory cursor store for tests and one-off replays."""

from __future__ import annotations

from typing import Optional

from gmailrelay.application.ports.cursor_store import CursorStore


class InMemoryCursorStore(CursorStore):
    """Dict-backed cursor store. Not durable."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._cursors: dict[str, str] = dict(initial or {})
        self.writes: list[tuple[str, str]] = []

    def get(self, mailbox_id: str) -> Optional[str]:
        return self._cursors.get(mailbox_id)

    def put(self, mailbox_id: str, cursor: str) -> None:
        self._cursors[mailbox_id] = cursor
        self.writes.append((mailbox_id, cursor))
