from __future__ import annotations
from typing import Protocol


class TokenProvider(Protocol):
    async def refresh(self) -> str: ...
