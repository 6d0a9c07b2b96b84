"""Notification dispatch: real-time channel events and e-mail notices.

Delivery is fire-and-forget. Failures are logged and never propagate into
the state change that triggered them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """Publish/subscribe channel for real-time events, keyed by room."""

    @abstractmethod
    async def publish(self, room: str, event: str, data: dict[str, Any]) -> None:
        raise NotImplementedError


class NullChannel(NotificationChannel):
    """Channel that drops every event."""

    async def publish(self, room: str, event: str, data: dict[str, Any]) -> None:
        return None


# Email templates keyed by event kind
EMAIL_TEMPLATES: dict[str, dict[str, str]] = {
    "report_rejected": {
        "subject": "Your inspection report was rejected - Smart Report",
        "body": (
            "<p>Hello {name},</p>"
            "<p>Your report <b>{title}</b> was rejected by a class representative.</p>"
            "<p>Comments: {comments}</p>"
        ),
    },
    "report_under_review": {
        "subject": "Your inspection report was approved by your representatives - Smart Report",
        "body": (
            "<p>Hello {name},</p>"
            "<p>Your report <b>{title}</b> was approved by both CS and CP "
            "and is now awaiting administrative review.</p>"
        ),
    },
    "report_reviewed": {
        "subject": "Your inspection report was reviewed - Smart Report",
        "body": (
            "<p>Hello {name},</p>"
            "<p>Your report <b>{title}</b> was marked <b>{status}</b> by an administrator.</p>"
            "<p>Comments: {comments}</p>"
        ),
    },
}


class EmailNotifier:
    """Send templated notices through a transactional mail HTTP API."""

    def __init__(self, api_key: str | None = None, api_url: str | None = None, sender: str | None = None):
        self.api_key = api_key if api_key is not None else settings.mail_api_key
        self.api_url = api_url or settings.mail_api_url
        self.sender = sender or settings.mail_from

    def render(self, event_kind: str, payload: dict[str, Any]) -> tuple[str, str]:
        template = EMAIL_TEMPLATES[event_kind]
        values = {"name": "", "title": "", "comments": "-", "status": ""}
        values.update({k: v for k, v in payload.items() if v is not None})
        return template["subject"], template["body"].format(**values)

    async def notify(self, event_kind: str, recipient_email: str, payload: dict[str, Any]) -> bool:
        """
        Send a notice. Never raises.

        Returns:
            True when the mail API accepted the message
        """
        if event_kind not in EMAIL_TEMPLATES:
            logger.warning(f"[NOTIFY] Unknown email event: {event_kind}")
            return False

        subject, html = self.render(event_kind, payload)

        if not self.api_key:
            logger.info(f"[NOTIFY] Mail delivery disabled, would send '{event_kind}' to {recipient_email}")
            return False

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": self.sender,
                        "to": [recipient_email],
                        "subject": subject,
                        "html": html,
                    },
                    timeout=10.0,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"[NOTIFY] Failed to send '{event_kind}' to {recipient_email}: {e}")
            return False

        logger.info(f"[NOTIFY] Sent '{event_kind}' to {recipient_email}")
        return True


class NotificationDispatcher:
    """Fan lifecycle events out to the real-time channel and e-mail."""

    def __init__(self, channel: NotificationChannel | None = None, mailer: EmailNotifier | None = None):
        self.channel = channel or NullChannel()
        self.mailer = mailer

    async def _publish(self, room: str, event: str, data: dict[str, Any]) -> None:
        try:
            await self.channel.publish(room, event, data)
        except Exception as e:
            logger.warning(f"[NOTIFY] Channel publish of '{event}' to {room} failed: {e}")

    async def _email(self, event_kind: str, recipient: str | None, payload: dict[str, Any]) -> None:
        if self.mailer is None or not recipient:
            return
        try:
            await self.mailer.notify(event_kind, recipient, payload)
        except Exception as e:
            logger.warning(f"[NOTIFY] Email '{event_kind}' to {recipient} failed: {e}")

    async def report_submitted(self, *, report_id: str, class_id: str, title: str, reporter_name: str) -> None:
        await self._publish(
            f"class:{class_id}",
            "report_submitted",
            {"report_id": report_id, "title": title, "reporter": reporter_name},
        )
        await self._publish("admin", "report_submitted", {"report_id": report_id, "class_id": class_id})

    async def report_status_changed(
        self,
        *,
        report_id: str,
        class_id: str,
        title: str,
        status: str,
        reporter_email: str | None,
        reporter_name: str,
        comments: str | None = None,
    ) -> None:
        data = {"report_id": report_id, "status": status}
        await self._publish(f"class:{class_id}", "report_status_changed", data)
        await self._publish("admin", "report_status_changed", {**data, "class_id": class_id})

        event_kind = {
            "REJECTED": "report_rejected",
            "UNDER_REVIEW": "report_under_review",
            "APPROVED": "report_reviewed",
            "REVIEWED": "report_reviewed",
        }.get(status)
        if event_kind:
            await self._email(
                event_kind,
                reporter_email,
                {"name": reporter_name, "title": title, "comments": comments, "status": status},
            )
