"""Error taxonomy for the notification pipeline.

Only AuthError and ResolutionError stop the cursor from advancing. Everything
else is contained to the message that produced it.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for pipeline errors."""


class AuthError(RelayError):
    """Credential exchange was rejected, or the API rejected a fresh token."""


class ResolutionError(RelayError):
    """The history query failed for a non-auth reason."""


class CursorExpiredError(ResolutionError):
    """The stored history id is too old for the provider to diff against."""


class FetchSkip(RelayError):
    """A single message could not be fetched. Recovered by omission."""

    def __init__(self, message_id: str, reason: str) -> None:
        super().__init__(f"Skipping message {message_id}: {reason}")
        self.message_id = message_id
        self.reason = reason


class MessageParseError(RelayError):
    """A fetched message could not be decoded into a normalized record."""


class DeliveryError(RelayError):
    """The downstream webhook rejected the payload or was unreachable."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(RelayError):
    """The inbound push envelope could not be decoded."""
