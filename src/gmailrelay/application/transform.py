"""Transform a normalized message into the agent webhook payload."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from gmailrelay.domain.entities.email_message import NormalizedMessage

HOOK_NAME = "gmail-notification"

Channel = Literal[
    "last",
    "whatsapp",
    "telegram",
    "discord",
    "slack",
    "mattermost",
    "signal",
    "imessage",
    "msteams",
]


class DeliveryPayload(BaseModel):
    """Request body for POST /hooks/agent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    message: str
    name: str | None = None
    agent_id: str | None = None
    session_key: str | None = None
    wake_mode: Literal["now", "next-heartbeat"] | None = None
    deliver: bool | None = None
    channel: Channel | None = None
    to: str | None = None
    model: str | None = None
    thinking: Literal["low", "medium", "high"] | None = None
    timeout_seconds: float | None = None

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def compose_message(msg: NormalizedMessage) -> str:
    return f"New email from {msg.from_address}\nSubject: {msg.subject}\n\n{msg.body_text or msg.snippet}"


def to_delivery_payload(msg: NormalizedMessage) -> DeliveryPayload:
    return DeliveryPayload(
        message=compose_message(msg),
        name=HOOK_NAME,
        channel="last",
        wake_mode="now",
    )
