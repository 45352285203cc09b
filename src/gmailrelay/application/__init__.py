"""Application layer - pipeline logic and ports."""

from gmailrelay.application.sender_filter import (
    extract_bare_address,
    is_allowed,
    parse_allow_list,
)
from gmailrelay.application.transform import DeliveryPayload, to_delivery_payload

__all__ = [
    "extract_bare_address",
    "is_allowed",
    "parse_allow_list",
    "DeliveryPayload",
    "to_delivery_payload",
]
