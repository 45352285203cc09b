from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

SNIPPET_LENGTH = 200


@dataclass(frozen=True)
class NormalizedMessage:
    message_id: str
    from_address: str
    subject: str
    body_text: str
    snippet: str
    thread_id: str
    to_address: Optional[str] = None
    labels: list[str] = field(default_factory=list)
    received_at: Optional[str] = None  # ISO-8601, UTC


def make_snippet(body: str, length: int = SNIPPET_LENGTH) -> str:
    # str slicing counts code points, so the result is always a prefix of body
    if not body:
        return ""
    return body[:length]
