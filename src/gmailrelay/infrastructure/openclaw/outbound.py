"""OpenClaw agent webhook client for delivering email notifications."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx
from loguru import logger

from gmailrelay.application.transform import DeliveryPayload
from gmailrelay.domain.errors import DeliveryError

DEFAULT_HOOK_PATH = "/hooks/agent"
BACKOFF_BASE_SECONDS = 1.0
BACKOFF_CAP_SECONDS = 10.0

SleepFn = Callable[[float], Awaitable[None]]


def backoff_delay(
    attempt: int,
    base: float = BACKOFF_BASE_SECONDS,
    cap: float = BACKOFF_CAP_SECONDS,
) -> float:
    """Delay after failed attempt number `attempt` (0-based): min(base * 2^attempt, cap)."""
    return min(base * (2 ** attempt), cap)


class OpenClawClient:
    """Posts payloads to the agent webhook with bearer auth."""

    def __init__(
        self,
        base_url: str,
        token: str,
        http_client: httpx.AsyncClient,
        hook_path: str = DEFAULT_HOOK_PATH,
        max_retries: int = 1,
        backoff_base: float = BACKOFF_BASE_SECONDS,
        backoff_cap: float = BACKOFF_CAP_SECONDS,
        sleep: SleepFn = asyncio.sleep,
    ):
        if not token:
            raise ValueError("OPENCLAW_HOOK_TOKEN is required")

        self.url = base_url.rstrip("/") + "/" + hook_path.lstrip("/")
        self.token = token
        self.http_client = http_client
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self.sleep = sleep

    async def deliver(self, payload: DeliveryPayload, token: str | None = None) -> httpx.Response:
        """Single POST attempt. Raises DeliveryError on any non-2xx or transport failure."""
        try:
            response = await self.http_client.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {token or self.token}",
                    "Content-Type": "application/json",
                },
                json=payload.to_json_dict(),
            )
        except httpx.TimeoutException as e:
            raise DeliveryError(f"OpenClaw webhook timeout: {e}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"OpenClaw webhook request failed: {e}") from e

        if not response.is_success:
            raise DeliveryError(
                f"OpenClaw webhook failed: {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
                body=response.text,
            )

        return response

    async def deliver_with_retry(
        self,
        payload: DeliveryPayload,
        token: str | None = None,
        max_retries: int | None = None,
    ) -> httpx.Response:
        """Deliver with up to `max_retries` attempts and capped exponential backoff.

        The last DeliveryError is re-raised once attempts are exhausted.
        """
        attempts = max(1, max_retries if max_retries is not None else self.max_retries)
        last_error: DeliveryError | None = None

        for attempt in range(attempts):
            try:
                return await self.deliver(payload, token)
            except DeliveryError as e:
                last_error = e
                logger.error(f"OpenClaw webhook attempt {attempt + 1}/{attempts} failed: {e}")

            if attempt < attempts - 1:
                delay = backoff_delay(attempt, self.backoff_base, self.backoff_cap)
                logger.debug(f"Retrying OpenClaw webhook in {delay:.1f}s")
                await self.sleep(delay)

        raise last_error or DeliveryError("OpenClaw webhook failed after retries")
