from __future__ import annotations
from typing import Protocol

from gmailrelay.application.transform import DeliveryPayload


class DeliveryTarget(Protocol):
    async def deliver_with_retry(self, payload: DeliveryPayload) -> object: ...
