"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from loguru import logger

from gmailrelay.application.ports.cursor_store import CursorStore
from gmailrelay.application.use_cases.handle_notification import NotificationHandler
from gmailrelay.infrastructure.gmail.auth import GoogleOAuthCredentials, GoogleTokenProvider
from gmailrelay.infrastructure.gmail.client import GmailChangeResolver
from gmailrelay.infrastructure.http.dispatcher import NotificationDispatcher
from gmailrelay.infrastructure.openclaw.outbound import OpenClawClient
from gmailrelay.infrastructure.settings import Settings, get_settings
from gmailrelay.infrastructure.sqlite.cursor_store import get_cursor_store


def build_handler(
    settings: Settings,
    http_client: httpx.AsyncClient,
    cursor_store: CursorStore | None = None,
) -> NotificationHandler:
    """Wire the production pipeline from settings."""
    token_provider = GoogleTokenProvider(
        GoogleOAuthCredentials(
            client_id=settings.gmail_client_id,
            client_secret=settings.gmail_client_secret.get_secret_value(),
            refresh_token=settings.gmail_refresh_token.get_secret_value(),
        ),
        http_client,
        token_endpoint=settings.oauth_token_endpoint,
    )
    delivery = OpenClawClient(
        base_url=settings.openclaw_webhook_url,
        token=settings.openclaw_hook_token.get_secret_value(),
        http_client=http_client,
        hook_path=settings.openclaw_hook_path,
        max_retries=settings.delivery_max_retries,
        backoff_base=settings.delivery_backoff_base_seconds,
        backoff_cap=settings.delivery_backoff_cap_seconds,
    )
    return NotificationHandler(
        cursor_store=cursor_store or get_cursor_store(settings.cursor_db_path),
        resolver=GmailChangeResolver(token_provider, http_client, api_base=settings.gmail_api_base),
        delivery=delivery,
        allowed_senders=settings.allowed_sender_set,
    )


def create_app(handler: NotificationHandler | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing a handler skips building the production pipeline (used by tests).
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        http_client: httpx.AsyncClient | None = None
        if handler is None:
            http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
            app.state.dispatcher = NotificationDispatcher(build_handler(settings, http_client))
            if settings.allowed_sender_set:
                logger.info(f"Sender allow-list: {sorted(settings.allowed_sender_set)}")
            else:
                logger.info("Sender allow-list empty - all senders allowed")
        else:
            app.state.dispatcher = NotificationDispatcher(handler)

        yield

        # Let in-flight notifications finish before closing the HTTP client
        logger.info("Shutting down...")
        await app.state.dispatcher.drain()
        if http_client is not None:
            await http_client.aclose()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Relays Gmail push notifications to an agent webhook",
        lifespan=lifespan,
    )

    from gmailrelay.infrastructure.http.webhook import router as webhook_router

    app.include_router(webhook_router)

    return app


# Create app instance
app = create_app()
