"""Best-effort delivery of notification intents."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.repositories import fetch_user
from src.errors import DependencyFailure
from src.notifications.base import NotificationIntent, Notifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Hand intents to a gateway and absorb every delivery failure.

    A moderation action has already committed by the time ``dispatch`` runs, so
    nothing raised here may reach the caller. Failures are logged and the
    intent is dropped; there is no retry and no queue.
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    async def dispatch(self, session: AsyncSession, intent: NotificationIntent) -> bool:
        try:
            return await self._deliver(session, intent)
        except DependencyFailure as exc:
            logger.error(
                f"Notification failed: {intent.type.value} "
                f"user={intent.user_id} listing={intent.listing_id}: {exc}"
            )
            return False

    async def _deliver(self, session: AsyncSession, intent: NotificationIntent) -> bool:
        try:
            user = await fetch_user(session, intent.user_id)
        except Exception as exc:
            raise DependencyFailure(f"recipient lookup failed: {exc}") from exc

        if user is None or not user.email.strip():
            logger.warning(
                f"No e-mail address for user {intent.user_id}, "
                f"skipping {intent.type.value} notification"
            )
            return False

        try:
            delivered = await self._notifier.send(intent, recipient=user.email)
        except Exception as exc:
            raise DependencyFailure(str(exc) or type(exc).__name__) from exc

        if not delivered:
            raise DependencyFailure("gateway reported failure")
        return True
