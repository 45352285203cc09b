"""Domain entities and errors."""

from gmailrelay.domain.entities.cursor import is_newer
from gmailrelay.domain.entities.email_message import NormalizedMessage, make_snippet
from gmailrelay.domain.entities.notification import (
    MailboxNotification,
    PushEnvelope,
    decode_envelope,
)
from gmailrelay.domain.errors import (
    AuthError,
    CursorExpiredError,
    DecodeError,
    DeliveryError,
    FetchSkip,
    MessageParseError,
    RelayError,
    ResolutionError,
)

__all__ = [
    "NormalizedMessage",
    "make_snippet",
    "MailboxNotification",
    "PushEnvelope",
    "decode_envelope",
    "is_newer",
    "RelayError",
    "AuthError",
    "ResolutionError",
    "CursorExpiredError",
    "FetchSkip",
    "MessageParseError",
    "DeliveryError",
    "DecodeError",
]
