"""Background processing of accepted notifications."""

from __future__ import annotations

import asyncio

from loguru import logger

from gmailrelay.application.use_cases.handle_notification import (
    NotificationHandler,
    NotificationOutcome,
)
from gmailrelay.domain.entities.notification import MailboxNotification


class NotificationDispatcher:
    """
    Runs each notification as its own asyncio task.

    Tasks are tracked so shutdown can drain them. Notifications for the same
    mailbox run one at a time, so the read-resolve-write on its cursor is not
    interleaved within this process.
    """

    def __init__(self, handler: NotificationHandler) -> None:
        self.handler = handler
        self._tasks: set[asyncio.Task[NotificationOutcome]] = set()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def locked_mailboxes(self) -> int:
        return len(self._locks)

    def submit(self, notification: MailboxNotification) -> asyncio.Task[NotificationOutcome]:
        """Schedule processing and return immediately."""
        task = asyncio.create_task(
            self._run(notification),
            name=f"notification:{notification.email_address}:{notification.history_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Queued notification for {notification.email_address} ({notification.history_id})")
        return task

    async def _run(self, notification: MailboxNotification) -> NotificationOutcome:
        mailbox = notification.email_address
        lock = self._locks.setdefault(mailbox, asyncio.Lock())
        self._lock_users[mailbox] = self._lock_users.get(mailbox, 0) + 1
        try:
            async with lock:
                return await self.handler.handle(notification)
        finally:
            # drop the lock once no queued task for this mailbox remains
            self._lock_users[mailbox] -= 1
            if not self._lock_users[mailbox]:
                del self._lock_users[mailbox]
                del self._locks[mailbox]

    async def drain(self) -> None:
        """Wait for every in-flight notification to finish."""
        if not self._tasks:
            return
        logger.info(f"Draining {len(self._tasks)} in-flight notification(s)...")
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        logger.info("Drain complete")
