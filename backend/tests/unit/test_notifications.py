"""Unit tests for notification dispatch and the websocket room manager."""

import json

import pytest

from backend.app.services.notifications import EmailNotifier, NotificationChannel, NotificationDispatcher
from backend.app.websocket.manager import ConnectionManager


class BrokenChannel(NotificationChannel):
    async def publish(self, room, event, data):
        raise RuntimeError("socket gone")


class RecordingMailer:
    def __init__(self):
        self.sent = []

    async def notify(self, event_kind, recipient_email, payload):
        self.sent.append((event_kind, recipient_email, payload))
        return True


class FakeWebSocket:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages = []

    async def accept(self):
        return None

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("closed")
        self.messages.append(json.loads(text))


class TestEmailNotifier:
    def test_render_fills_template(self):
        subject, body = EmailNotifier(api_key="").render(
            "report_rejected", {"name": "Carol", "title": "Daily", "comments": "dirty"}
        )
        assert "rejected" in subject
        assert "Carol" in body and "dirty" in body

    @pytest.mark.asyncio
    async def test_without_api_key_nothing_is_sent(self):
        notifier = EmailNotifier(api_key="")
        assert await notifier.notify("report_reviewed", "a@example.com", {"title": "x"}) is False

    @pytest.mark.asyncio
    async def test_unknown_event(self):
        assert await EmailNotifier(api_key="key").notify("unknown", "a@example.com", {}) is False


class TestDispatcher:
    @pytest.mark.asyncio
    async def test_channel_failure_is_swallowed(self):
        mailer = RecordingMailer()
        dispatcher = NotificationDispatcher(channel=BrokenChannel(), mailer=mailer)

        await dispatcher.report_status_changed(
            report_id="r1",
            class_id="c1",
            title="Daily",
            status="REJECTED",
            reporter_email="carol@example.com",
            reporter_name="Carol",
            comments="dirty",
        )

        assert mailer.sent == [
            ("report_rejected", "carol@example.com",
             {"name": "Carol", "title": "Daily", "comments": "dirty", "status": "REJECTED"}),
        ]

    @pytest.mark.asyncio
    async def test_partial_sends_no_email(self, channel):
        mailer = RecordingMailer()
        dispatcher = NotificationDispatcher(channel=channel, mailer=mailer)

        await dispatcher.report_status_changed(
            report_id="r1", class_id="c1", title="Daily", status="PARTIAL",
            reporter_email="carol@example.com", reporter_name="Carol",
        )

        assert mailer.sent == []
        assert [room for room, _, _ in channel.events] == ["class:c1", "admin"]


class TestConnectionManager:
    @pytest.mark.asyncio
    async def test_publish_reaches_room_only(self):
        manager = ConnectionManager()
        inside, outside = FakeWebSocket(), FakeWebSocket()
        await manager.connect(inside, "class:c1")
        await manager.connect(outside, "class:c2")

        await manager.publish("class:c1", "report_submitted", {"report_id": "r1"})

        assert inside.messages == [{"type": "report_submitted", "data": {"report_id": "r1"}}]
        assert outside.messages == []

    @pytest.mark.asyncio
    async def test_broken_connections_are_dropped(self):
        manager = ConnectionManager()
        await manager.connect(FakeWebSocket(fail=True), "admin")

        await manager.broadcast("admin", {"type": "ping"})

        assert "admin" not in manager.active_connections
