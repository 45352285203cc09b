from __future__ import annotations
from dataclasses import dataclass

import httpx
from loguru import logger

from gmailrelay.domain.errors import AuthError

OAUTH_TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class GoogleOAuthCredentials:
    """
    Long-lived OAuth client credentials plus the refresh token for one mailbox.
    """
    client_id: str
    client_secret: str
    refresh_token: str


class GoogleTokenProvider:
    """
    Responsible ONLY for exchanging the refresh token for a short-lived
    access token. No caching: every refresh() is a live exchange.
    """

    def __init__(
        self,
        creds: GoogleOAuthCredentials,
        http_client: httpx.AsyncClient,
        token_endpoint: str = OAUTH_TOKEN_ENDPOINT,
    ) -> None:
        self.creds = creds
        self.http_client = http_client
        self.token_endpoint = token_endpoint

    async def refresh(self) -> str:
        """
        Returns a fresh access token.
        Raises AuthError on transport failure, rejection, or a malformed reply.
        """
        try:
            response = await self.http_client.post(
                self.token_endpoint,
                data={
                    "client_id": self.creds.client_id,
                    "client_secret": self.creds.client_secret,
                    "refresh_token": self.creds.refresh_token,
                    "grant_type": "refresh_token",
                },
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Token refresh failed: {e}") from e

        if response.status_code >= 300:
            raise AuthError(f"Token refresh failed: {response.status_code} {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise AuthError(f"Token refresh returned invalid JSON: {e}") from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise AuthError("Token refresh response missing access_token")

        logger.debug("Obtained fresh Gmail access token")
        return access_token
