from __future__ import annotations
import re
from datetime import datetime, timezone
from email.utils import getaddresses, parsedate_to_datetime
from typing import Optional, Sequence, Union

from bs4 import BeautifulSoup

from gmailrelay.application.ports.email_source import RawMessage
from gmailrelay.domain.entities.email_message import NormalizedMessage, make_snippet
from gmailrelay.infrastructure.email.rfc822 import ExtractedBody, extract_body

_BLOCK_TAGS = [
    "p", "div", "li", "tr", "table", "ul", "ol", "blockquote", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6", "section", "article", "header", "footer",
]


def html_to_text(html: str) -> str:
    """Convert HTML to plain text without word wrapping.

    <br> becomes a newline and block elements end with one, so the line
    structure of the message survives.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.append("\n")

    text = soup.get_text()
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def first_address(value: Union[str, Sequence[str], None]) -> str:
    """First email address in a header value, or "" if there is none.

    Accepts a bare address, 'Name <addr>', a comma-separated list of those,
    or a list of header values.
    """
    if not value:
        return ""
    values = [value] if isinstance(value, str) else list(value)
    for _name, addr in getaddresses(values):
        if addr and "@" in addr:
            return addr
    return ""


def _select_body(body: ExtractedBody) -> str:
    # Prefer text/plain; fallback to converted HTML
    if body.text and body.text.strip():
        return body.text.strip()
    if body.html:
        return html_to_text(body.html)
    return ""


def _received_at(raw: RawMessage, body: ExtractedBody) -> Optional[str]:
    if raw.internal_date and raw.internal_date.isdigit():
        try:
            return datetime.fromtimestamp(int(raw.internal_date) / 1000, tz=timezone.utc).isoformat()
        except (OverflowError, OSError, ValueError):
            pass  # out of range; use the Date header

    date_values = body.header("date")
    if not date_values:
        return None
    try:
        dt = parsedate_to_datetime(date_values[0])
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def normalize(raw: RawMessage) -> NormalizedMessage:
    """Map a fetched Gmail message onto the canonical pipeline record.

    Raises:
        MessageParseError: If the RFC 822 bytes cannot be parsed
    """
    body = extract_body(raw.raw)
    body_text = _select_body(body)
    subjects = body.header("subject")

    return NormalizedMessage(
        message_id=raw.id,
        thread_id=raw.thread_id,
        from_address=first_address(body.header("from")),
        to_address=first_address(body.header("to")) or None,
        subject=subjects[0].strip() if subjects else "",
        body_text=body_text,
        # own snippet, not Gmail's
        snippet=make_snippet(body_text),
        labels=list(raw.label_ids),
        received_at=_received_at(raw, body),
    )
