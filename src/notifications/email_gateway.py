"""E-mail notification gateways."""

import logging

import httpx

from src.config import Settings, get_settings
from src.notifications.base import NotificationIntent, Notifier

logger = logging.getLogger(__name__)


def _render_text(intent: NotificationIntent) -> str:
    if intent.link_url:
        return f"{intent.body}\n\n{intent.link_url}"
    return intent.body


class EmailNotifier(Notifier):
    """Send notifications through a transactional e-mail HTTP API."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._timeout = httpx.Timeout(self._settings.notification_timeout_seconds)

    async def send(self, intent: NotificationIntent, *, recipient: str) -> bool:
        """POST the rendered message to the configured e-mail endpoint."""

        payload = {
            "from": self._settings.email_sender,
            "to": [recipient],
            "subject": intent.subject,
            "text": _render_text(intent),
            "tags": [{"name": "type", "value": intent.type.value}],
        }
        headers = {"Authorization": f"Bearer {self._settings.email_api_key}"}

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                self._settings.email_api_url, json=payload, headers=headers
            )
            response.raise_for_status()

        logger.info(f"E-mail notification sent: {intent.type.value} to user {intent.user_id}")
        return True


class LogNotifier(Notifier):
    """Development fallback that writes the message to the log instead of sending."""

    async def send(self, intent: NotificationIntent, *, recipient: str) -> bool:
        logger.info(
            f"[DEV EMAIL] to={recipient} | {intent.subject}\n{_render_text(intent)}"
        )
        return True


def build_notifier(settings: Settings | None = None) -> Notifier:
    """Pick the e-mail gateway when configured, otherwise the log fallback."""

    settings = settings or get_settings()
    if settings.email_api_url and settings.email_api_key:
        return EmailNotifier(settings)
    logger.warning("E-mail API not configured, notifications will only be logged")
    return LogNotifier()
