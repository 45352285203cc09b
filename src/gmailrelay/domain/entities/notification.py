"""Inbound push envelope and the mailbox notification it carries."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError

from gmailrelay.domain.errors import DecodeError


class PushMessage(BaseModel):
    """The `message` member of a Pub/Sub push request."""

    data: str
    messageId: str | None = None
    publishTime: str | None = None
    attributes: dict[str, str] | None = None


class PushEnvelope(BaseModel):
    """Pub/Sub push request body."""

    message: PushMessage
    subscription: str | None = None


@dataclass(frozen=True)
class MailboxNotification:
    """Decoded Gmail watch notification: which mailbox changed, and up to where."""

    email_address: str
    history_id: str


def decode_envelope(body: bytes | str) -> MailboxNotification:
    """Decode a raw push request body into a MailboxNotification.

    Raises:
        DecodeError: If the envelope, its base64 data, or the inner JSON is malformed
    """
    try:
        envelope = PushEnvelope.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError(f"Invalid push envelope: {e}") from e

    data = envelope.message.data
    try:
        # Pub/Sub sends standard base64; accept the urlsafe alphabet too
        normalized = data.replace("-", "+").replace("_", "/")
        decoded = base64.b64decode(normalized + "=" * (-len(normalized) % 4))
        payload = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Invalid notification data: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError("Notification data is not a JSON object")

    email_address = payload.get("emailAddress")
    history_id = payload.get("historyId")
    if not email_address or history_id in (None, ""):
        raise DecodeError("Notification data missing emailAddress or historyId")

    # Gmail sends historyId as a JSON number
    return MailboxNotification(email_address=str(email_address), history_id=str(history_id))
