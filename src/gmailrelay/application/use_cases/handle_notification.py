"""Resolve a Gmail notification into new messages and deliver them downstream."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from loguru import logger

from gmailrelay.application.ports.cursor_store import CursorStore
from gmailrelay.application.ports.delivery import DeliveryTarget
from gmailrelay.application.ports.email_source import ChangeResolver, RawMessage
from gmailrelay.application.sender_filter import is_allowed, parse_allow_list
from gmailrelay.application.transform import to_delivery_payload
from gmailrelay.domain.entities.cursor import is_newer
from gmailrelay.domain.entities.email_message import NormalizedMessage
from gmailrelay.domain.entities.notification import MailboxNotification
from gmailrelay.domain.errors import CursorExpiredError, DeliveryError, MessageParseError
from gmailrelay.infrastructure.email.mapper import normalize


class ProcessingState(str, Enum):
    RECEIVED = "received"
    RESOLVING = "resolving"
    FILTERING = "filtering"
    DELIVERING = "delivering"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass
class NotificationOutcome:
    """What happened to one notification."""

    state: ProcessingState = ProcessingState.RECEIVED
    baseline: bool = False
    stale: bool = False
    delivered: int = 0
    filtered: int = 0
    failed: int = 0
    skipped: int = 0


class NotificationHandler:
    """Per-notification pipeline.

    Flow:
    1. Read stored cursor (none -> store baseline, stop)
    2. Resolve messages added since the stored cursor
    3. Normalize, filter by sender, deliver each message
    4. Advance cursor to the notification's history id

    Per-message failures never stop the loop. Only resolution failures keep
    the cursor where it was, so the next notification re-covers the gap.
    """

    def __init__(
        self,
        cursor_store: CursorStore,
        resolver: ChangeResolver,
        delivery: DeliveryTarget,
        allowed_senders: Iterable[str] = (),
        normalizer: Callable[[RawMessage], NormalizedMessage] = normalize,
    ) -> None:
        self.cursor_store = cursor_store
        self.resolver = resolver
        self.delivery = delivery
        self.allowed_senders = parse_allow_list(allowed_senders)
        self.normalizer = normalizer

    async def handle(self, notification: MailboxNotification) -> NotificationOutcome:
        """Process one notification. Never raises."""
        outcome = NotificationOutcome()
        try:
            await self._process(notification, outcome)
        except Exception as e:
            outcome.state = ProcessingState.FAILED
            logger.exception(
                f"Error processing notification for {notification.email_address} "
                f"(historyId {notification.history_id}): {e}"
            )
        return outcome

    async def _process(self, notification: MailboxNotification, outcome: NotificationOutcome) -> None:
        mailbox = notification.email_address
        incoming = notification.history_id
        logger.info(f"New email notification for {mailbox}, historyId: {incoming}")

        stored = self.cursor_store.get(mailbox)
        if stored is None:
            logger.info(f"First notification for {mailbox} - storing baseline historyId {incoming}")
            self.cursor_store.put(mailbox, incoming)
            outcome.baseline = True
            outcome.state = ProcessingState.COMMITTED
            return

        if not is_newer(incoming, stored):
            logger.info(f"Ignoring stale notification for {mailbox}: {incoming} <= stored {stored}")
            outcome.stale = True
            outcome.state = ProcessingState.COMMITTED
            return

        outcome.state = ProcessingState.RESOLVING
        try:
            changes = await self.resolver.resolve(mailbox, stored)
        except CursorExpiredError as e:
            logger.warning(f"{e}; re-baselining {mailbox} at {incoming}")
            self.cursor_store.put(mailbox, incoming)
            outcome.baseline = True
            outcome.state = ProcessingState.COMMITTED
            return

        outcome.skipped = len(changes.skipped)
        if not changes.messages:
            logger.info(f"No new messages found for {mailbox}")
        else:
            logger.info(f"Processing {len(changes.messages)} new email(s)")

        for raw in changes.messages:
            outcome.state = ProcessingState.FILTERING
            try:
                msg = self.normalizer(raw)
            except MessageParseError as e:
                logger.warning(f"Skipping message {raw.id}: {e}")
                outcome.skipped += 1
                continue
            except Exception as e:
                logger.exception(f"Skipping message {raw.id}, normalization failed: {e}")
                outcome.skipped += 1
                continue

            logger.info(f"Email from {msg.from_address}: {msg.subject}")
            if not is_allowed(msg.from_address, self.allowed_senders):
                logger.info("  -> Filtered out (not in allowed senders list)")
                outcome.filtered += 1
                continue

            outcome.state = ProcessingState.DELIVERING
            try:
                await self.delivery.deliver_with_retry(to_delivery_payload(msg))
            except DeliveryError as e:
                logger.error(f"  -> Delivery failed for {msg.message_id}: {e}")
                outcome.failed += 1
                continue

            logger.info("  -> Sent to OpenClaw")
            outcome.delivered += 1

        logger.info(
            f"Summary: {outcome.delivered} sent, {outcome.filtered} filtered out, "
            f"{outcome.failed} failed, {outcome.skipped} skipped "
            f"(mailbox historyId {changes.latest_history_id or 'unknown'})"
        )

        self.cursor_store.put(mailbox, incoming)
        outcome.state = ProcessingState.COMMITTED
