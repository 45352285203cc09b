from __future__ import annotations
from dataclasses import dataclass, field
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from typing import Optional

from gmailrelay.domain.errors import MessageParseError


@dataclass(frozen=True)
class ExtractedBody:
    text: Optional[str]
    html: Optional[str]
    headers: dict[str, list[str]] = field(default_factory=dict)

    def header(self, name: str) -> list[str]:
        return self.headers.get(name.lower(), [])


def _part_content(part: EmailMessage) -> Optional[str]:
    try:
        content = part.get_content()
    except (LookupError, UnicodeError, ValueError):
        # unknown charset or broken transfer encoding; fall back to lossy decode
        payload = part.get_payload(decode=True) or b""
        content = payload.decode("utf-8", errors="replace")
    return content if isinstance(content, str) else None


def extract_body(rfc822_bytes: bytes) -> ExtractedBody:
    """Split an RFC 822 message into plain text, HTML and headers.

    Attachments are ignored. The first text/plain and first text/html parts win.
    """
    try:
        em = BytesParser(policy=policy.default).parsebytes(rfc822_bytes)
        # header values are parsed lazily; malformed addresses raise here
        return _split(em)
    except Exception as e:
        raise MessageParseError(f"Unparseable message: {e!r}") from e


def _split(em: EmailMessage) -> ExtractedBody:
    headers: dict[str, list[str]] = {}
    for name, value in em.items():
        headers.setdefault(name.lower(), []).append(str(value))

    text: Optional[str] = None
    html: Optional[str] = None
    for part in em.walk():
        if part.is_multipart():
            continue

        # skip explicit attachments, including text ones
        disp = (part.get("Content-Disposition") or "").lower()
        if "attachment" in disp or part.get_filename():
            continue

        ctype = part.get_content_type()
        if ctype == "text/plain" and text is None:
            text = _part_content(part)
        elif ctype == "text/html" and html is None:
            html = _part_content(part)

    return ExtractedBody(text=text, html=html, headers=headers)
