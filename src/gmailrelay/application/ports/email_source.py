from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Protocol


@dataclass(frozen=True)
class RawMessage:
    # Gmail message fetched with format=raw; raw holds the decoded RFC 822 bytes
    id: str
    thread_id: str
    raw: bytes
    label_ids: list[str] = field(default_factory=list)
    internal_date: Optional[str] = None  # epoch milliseconds, as Gmail sends it


@dataclass
class ChangeSet:
    message_ids: list[str] = field(default_factory=list)
    messages: list[RawMessage] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    latest_history_id: Optional[str] = None


class ChangeResolver(Protocol):
    async def resolve(self, mailbox_id: str, since_cursor: str) -> ChangeSet: ...
