"""
Tests for the HTTP surface and background dispatch.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from gmailrelay.api.main import create_app
from gmailrelay.application.ports.email_source import ChangeSet
from gmailrelay.application.use_cases.handle_notification import NotificationHandler
from gmailrelay.domain.entities.notification import MailboxNotification
from gmailrelay.domain.errors import ResolutionError
from gmailrelay.infrastructure.http.dispatcher import NotificationDispatcher
from gmailrelay.infrastructure.stores import InMemoryCursorStore


@pytest.fixture
def pipeline(fake_resolver, recording_delivery):
    """Handler wired to in-memory collaborators, exposed for assertions."""

    class Pipeline:
        def __init__(self):
            self.store = InMemoryCursorStore()
            self.resolver = fake_resolver()
            self.delivery = recording_delivery()

        @property
        def handler(self):
            return NotificationHandler(
                cursor_store=self.store,
                resolver=self.resolver,
                delivery=self.delivery,
            )

    return Pipeline()


class TestRoutes:
    def test_health(self, pipeline):
        with TestClient(create_app(pipeline.handler)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.text == "OK"

    def test_unknown_path_is_404(self, pipeline):
        with TestClient(create_app(pipeline.handler)) as client:
            assert client.get("/nope").status_code == 404
            assert client.post("/hooks/agent", json={}).status_code == 404

    def test_other_methods_on_known_paths_are_404(self, pipeline):
        with TestClient(create_app(pipeline.handler)) as client:
            assert client.get("/webhook/gmail").status_code == 404
            assert client.delete("/webhook/gmail").status_code == 404
            assert client.post("/health").status_code == 404

    def test_unknown_source_is_404(self, pipeline, push_body):
        with TestClient(create_app(pipeline.handler)) as client:
            response = client.post("/webhook/outlook", content=push_body())

        assert response.status_code == 404

    def test_malformed_envelope_is_acknowledged_without_side_effects(self, pipeline):
        with TestClient(create_app(pipeline.handler)) as client:
            response = client.post("/webhook/gmail", content=b'{"message": {"data": "!!!"}}')
            empty = client.post("/webhook/gmail", content=b"")

        assert response.status_code == 200
        assert response.json() == {"status": "ignored"}
        assert empty.status_code == 200
        assert pipeline.store.writes == []
        assert pipeline.resolver.calls == []

    def test_first_notification_stores_baseline(self, pipeline, push_body):
        with TestClient(create_app(pipeline.handler)) as client:
            response = client.post("/webhook/gmail", content=push_body("a@x.com", "50"))

        # shutdown drains the background task
        assert response.status_code == 200
        assert response.json() == {"status": "accepted"}
        assert pipeline.store.get("a@x.com") == "50"
        assert pipeline.delivery.payloads == []

    def test_notification_is_processed_in_background(self, pipeline, push_body, make_raw_message):
        pipeline.store.put("a@x.com", "40")
        raw = make_raw_message("m1", from_="spam@y.com", subject="Hey", text="Hi")
        pipeline.resolver.changes = ChangeSet(message_ids=["m1"], messages=[raw])

        with TestClient(create_app(pipeline.handler)) as client:
            response = client.post("/webhook/gmail", content=push_body("a@x.com", "50"))

        assert response.status_code == 200
        assert pipeline.resolver.calls == [("a@x.com", "40")]
        assert [p.message for p in pipeline.delivery.payloads] == ["New email from spam@y.com\nSubject: Hey\n\nHi"]
        assert pipeline.store.get("a@x.com") == "50"

    def test_internal_failure_still_returns_200(self, pipeline, push_body):
        pipeline.store.put("a@x.com", "40")
        pipeline.resolver.error = ResolutionError("gmail down")

        with TestClient(create_app(pipeline.handler)) as client:
            response = client.post("/webhook/gmail", content=push_body("a@x.com", "50"))

        assert response.status_code == 200
        assert pipeline.store.get("a@x.com") == "40"


class SlowHandler:
    """Records start/finish order; each call yields to the loop mid-way."""

    def __init__(self):
        self.events: list[str] = []

    async def handle(self, notification: MailboxNotification):
        self.events.append(f"start:{notification.email_address}:{notification.history_id}")
        await asyncio.sleep(0.01)
        self.events.append(f"end:{notification.email_address}:{notification.history_id}")
        return None


class TestDispatcher:
    @pytest.mark.asyncio
    async def test_same_mailbox_is_serialized(self):
        handler = SlowHandler()
        dispatcher = NotificationDispatcher(handler)

        dispatcher.submit(MailboxNotification("a@x.com", "1"))
        dispatcher.submit(MailboxNotification("a@x.com", "2"))
        await dispatcher.drain()

        assert handler.events == ["start:a@x.com:1", "end:a@x.com:1", "start:a@x.com:2", "end:a@x.com:2"]

    @pytest.mark.asyncio
    async def test_idle_mailbox_locks_are_released(self):
        dispatcher = NotificationDispatcher(SlowHandler())

        dispatcher.submit(MailboxNotification("a@x.com", "1"))
        dispatcher.submit(MailboxNotification("a@x.com", "2"))
        dispatcher.submit(MailboxNotification("b@x.com", "1"))
        await asyncio.sleep(0)
        assert dispatcher.locked_mailboxes == 2

        await dispatcher.drain()

        assert dispatcher.locked_mailboxes == 0

    @pytest.mark.asyncio
    async def test_different_mailboxes_run_concurrently(self):
        handler = SlowHandler()
        dispatcher = NotificationDispatcher(handler)

        dispatcher.submit(MailboxNotification("a@x.com", "1"))
        dispatcher.submit(MailboxNotification("b@x.com", "1"))
        await dispatcher.drain()

        assert handler.events[:2] == ["start:a@x.com:1", "start:b@x.com:1"]

    @pytest.mark.asyncio
    async def test_drain_waits_for_in_flight_tasks(self):
        dispatcher = NotificationDispatcher(SlowHandler())
        task = dispatcher.submit(MailboxNotification("a@x.com", "1"))
        assert dispatcher.in_flight == 1

        await dispatcher.drain()

        assert task.done()
        assert dispatcher.in_flight == 0

    @pytest.mark.asyncio
    async def test_drain_with_nothing_in_flight(self):
        await NotificationDispatcher(SlowHandler()).drain()
