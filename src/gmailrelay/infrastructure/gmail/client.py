from __future__ import annotations
import base64
import binascii
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from gmailrelay.application.ports.email_source import ChangeResolver, ChangeSet, RawMessage
from gmailrelay.application.ports.token_provider import TokenProvider
from gmailrelay.domain.errors import AuthError, CursorExpiredError, FetchSkip, ResolutionError

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"


@dataclass
class _AccessState:
    # One refresh is allowed per resolution, across all history pages
    token: str
    refreshed: bool = False


class GmailChangeResolver(ChangeResolver):
    """Turns a stored historyId into the messages added since then."""

    def __init__(
        self,
        token_provider: TokenProvider,
        http_client: httpx.AsyncClient,
        api_base: str = GMAIL_API_BASE,
    ) -> None:
        self.token_provider = token_provider
        self.http_client = http_client
        self.api_base = api_base.rstrip("/")

    def _user_url(self, mailbox_id: str, suffix: str) -> str:
        return f"{self.api_base}/users/{quote(mailbox_id, safe='')}/{suffix}"

    async def resolve(self, mailbox_id: str, since_cursor: str) -> ChangeSet:
        state = _AccessState(token=await self.token_provider.refresh())

        history, latest = await self._list_history(mailbox_id, since_cursor, state)
        changes = ChangeSet(message_ids=_collect_added_ids(history), latest_history_id=latest)

        if not changes.message_ids:
            return changes

        logger.info(f"Found {len(changes.message_ids)} new message(s) for {mailbox_id}")

        for message_id in changes.message_ids:
            try:
                changes.messages.append(await self._fetch_message(mailbox_id, message_id, state.token))
            except FetchSkip as e:
                logger.warning(str(e))
                changes.skipped.append(message_id)

        return changes

    async def _list_history(
        self, mailbox_id: str, since_cursor: str, state: _AccessState
    ) -> tuple[list[dict[str, Any]], Optional[str]]:
        url = self._user_url(mailbox_id, "history")
        records: list[dict[str, Any]] = []
        latest: Optional[str] = None
        page_token: Optional[str] = None

        while True:
            params = {"startHistoryId": since_cursor, "historyTypes": "messageAdded"}
            if page_token:
                params["pageToken"] = page_token

            response = await self._authorized_get(url, params, state)

            if response.status_code == 404:
                raise CursorExpiredError(
                    f"History {since_cursor} for {mailbox_id} is no longer available"
                )
            if not response.is_success:
                raise ResolutionError(
                    f"Gmail history.list failed: {response.status_code} {response.text}"
                )

            try:
                data = response.json()
            except ValueError as e:
                raise ResolutionError(f"Gmail history.list returned invalid JSON: {e}") from e
            if not isinstance(data, dict):
                raise ResolutionError("Gmail history.list returned a non-object body")

            records.extend(data.get("history") or [])
            if data.get("historyId"):
                latest = str(data["historyId"])

            page_token = data.get("nextPageToken")
            if not page_token:
                return records, latest

    async def _authorized_get(
        self, url: str, params: dict[str, str], state: _AccessState
    ) -> httpx.Response:
        response = await self._get(url, params, state.token)
        if response.status_code != 401:
            return response

        if state.refreshed:
            raise AuthError("Gmail rejected a freshly refreshed access token")

        logger.info("Access token expired, refreshing...")
        state.token = await self.token_provider.refresh()
        state.refreshed = True

        response = await self._get(url, params, state.token)
        if response.status_code == 401:
            raise AuthError("Gmail rejected a freshly refreshed access token")
        return response

    async def _get(self, url: str, params: dict[str, str], token: str) -> httpx.Response:
        try:
            return await self.http_client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise ResolutionError(f"Gmail request failed: {e}") from e

    async def _fetch_message(self, mailbox_id: str, message_id: str, token: str) -> RawMessage:
        url = self._user_url(mailbox_id, f"messages/{quote(message_id, safe='')}")
        try:
            response = await self.http_client.get(
                url,
                params={"format": "raw"},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise FetchSkip(message_id, f"request failed: {e}") from e

        if not response.is_success:
            raise FetchSkip(message_id, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise FetchSkip(message_id, "invalid JSON") from e

        raw = data.get("raw") if isinstance(data, dict) else None
        if not raw:
            raise FetchSkip(message_id, "no raw data")

        try:
            raw_bytes = base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4))
        except (binascii.Error, ValueError) as e:
            raise FetchSkip(message_id, f"undecodable raw data: {e}") from e

        internal_date = data.get("internalDate")
        return RawMessage(
            id=data.get("id") or message_id,
            thread_id=data.get("threadId") or "",
            raw=raw_bytes,
            label_ids=list(data.get("labelIds") or []),
            internal_date=str(internal_date) if internal_date else None,
        )


def _collect_added_ids(history: list[dict[str, Any]]) -> list[str]:
    """Message ids from messagesAdded records, in feed order, first occurrence wins.

    Deletions and label changes carry nothing new to deliver.
    """
    seen: set[str] = set()
    ids: list[str] = []
    for record in history:
        for added in record.get("messagesAdded") or []:
            message_id = (added.get("message") or {}).get("id")
            if message_id and message_id not in seen:
                seen.add(message_id)
                ids.append(message_id)
    return ids
