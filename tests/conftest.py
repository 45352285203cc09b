"""
Pytest fixtures for gmail-relay tests.
"""

import base64
import json
from email.message import EmailMessage

import pytest

from gmailrelay.application.ports.email_source import ChangeSet, RawMessage
from gmailrelay.domain.errors import DeliveryError
from gmailrelay.infrastructure.stores import InMemoryCursorStore


def _rfc822(
    from_: str = "sender@example.com",
    to: str = "me@example.com",
    subject: str = "Hello",
    text: str | None = "Hi",
    html: str | None = None,
    date: str | None = "Thu, 30 Jan 2026 10:00:00 +0000",
) -> bytes:
    em = EmailMessage()
    if from_:
        em["From"] = from_
    if to:
        em["To"] = to
    if subject is not None:
        em["Subject"] = subject
    if date:
        em["Date"] = date

    if text is not None and html is not None:
        em.set_content(text)
        em.add_alternative(html, subtype="html")
    elif html is not None:
        em.set_content(html, subtype="html")
    elif text is not None:
        em.set_content(text)
    return em.as_bytes()


@pytest.fixture
def make_rfc822():
    """Factory for RFC 822 message bytes."""
    return _rfc822


@pytest.fixture
def make_raw_message():
    """Factory for fetched RawMessage records."""

    def _make(message_id: str = "m1", thread_id: str = "t1", labels=None, internal_date=None, **kwargs) -> RawMessage:
        return RawMessage(
            id=message_id,
            thread_id=thread_id,
            raw=_rfc822(**kwargs),
            label_ids=list(labels or ["INBOX", "UNREAD"]),
            internal_date=internal_date,
        )

    return _make


@pytest.fixture
def gmail_raw_json():
    """Factory for Gmail messages.get(format=raw) responses."""

    def _make(message_id: str, **kwargs) -> dict:
        raw = base64.urlsafe_b64encode(_rfc822(**kwargs)).decode("ascii").rstrip("=")
        return {
            "id": message_id,
            "threadId": f"thread-{message_id}",
            "labelIds": ["INBOX"],
            "internalDate": "1769767200000",
            "raw": raw,
        }

    return _make


@pytest.fixture
def push_body():
    """Factory for Pub/Sub push request bodies."""

    def _make(email_address: str = "a@x.com", history_id="50") -> bytes:
        data = base64.b64encode(
            json.dumps({"emailAddress": email_address, "historyId": history_id}).encode("utf-8")
        ).decode("ascii")
        return json.dumps({
            "message": {
                "data": data,
                "messageId": "pubsub-1",
                "publishTime": "2026-01-30T10:00:00Z",
            },
            "subscription": "projects/demo/subscriptions/gmail-push",
        }).encode("utf-8")

    return _make


@pytest.fixture
def cursor_store():
    return InMemoryCursorStore()


class FakeResolver:
    """Returns a fixed ChangeSet (or raises) and records calls."""

    def __init__(self, changes: ChangeSet | None = None, error: Exception | None = None):
        self.changes = changes or ChangeSet()
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def resolve(self, mailbox_id: str, since_cursor: str) -> ChangeSet:
        self.calls.append((mailbox_id, since_cursor))
        if self.error is not None:
            raise self.error
        return self.changes


class RecordingDelivery:
    """Records payloads; rejects any payload whose text contains a fail marker."""

    def __init__(self, fail_markers: tuple[str, ...] = ()):
        self.fail_markers = fail_markers
        self.payloads = []

    async def deliver_with_retry(self, payload):
        if any(marker in payload.message for marker in self.fail_markers):
            raise DeliveryError("downstream rejected", status_code=500, body="boom")
        self.payloads.append(payload)
        return None


@pytest.fixture
def fake_resolver():
    return FakeResolver


@pytest.fixture
def recording_delivery():
    return RecordingDelivery
