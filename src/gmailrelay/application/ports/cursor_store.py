from __future__ import annotations
from typing import Optional, Protocol


class CursorStore(Protocol):
    def get(self, mailbox_id: str) -> Optional[str]: ...
    def put(self, mailbox_id: str, cursor: str) -> None: ...
