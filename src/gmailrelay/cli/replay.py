"""Run a single notification through the pipeline, or reset a mailbox cursor."""

from __future__ import annotations

import argparse
import asyncio

import httpx

from gmailrelay.api.main import build_handler
from gmailrelay.cli.serve import configure_logging
from gmailrelay.domain.entities.notification import MailboxNotification
from gmailrelay.infrastructure.settings import get_settings
from gmailrelay.infrastructure.sqlite.cursor_store import get_cursor_store


async def _replay(notification: MailboxNotification) -> int:
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http_client:
        handler = build_handler(settings, http_client)
        outcome = await handler.handle(notification)

    print(f"State: {outcome.state.value}")
    if outcome.baseline:
        print("Stored baseline cursor (no messages processed)")
    elif outcome.stale:
        print("Notification not newer than stored cursor (nothing to do)")
    else:
        print(
            f"Delivered {outcome.delivered}, filtered {outcome.filtered}, "
            f"failed {outcome.failed}, skipped {outcome.skipped}"
        )
    return 0 if outcome.state.value == "committed" else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay a Gmail notification through the relay")
    parser.add_argument("--mailbox", required=True, help="Gmail address the notification is for")
    parser.add_argument("--history-id", required=True, help="historyId carried by the notification")
    parser.add_argument("--reset", action="store_true", help="Overwrite the stored cursor with --history-id and exit")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.reset:
        store = get_cursor_store(settings.cursor_db_path)
        previous = store.get(args.mailbox)
        store.put(args.mailbox, args.history_id)
        print(f"Cursor for {args.mailbox}: {previous or '(none)'} -> {args.history_id}")
        return 0

    notification = MailboxNotification(email_address=args.mailbox, history_id=args.history_id)
    return asyncio.run(_replay(notification))


if __name__ == "__main__":
    raise SystemExit(main())
