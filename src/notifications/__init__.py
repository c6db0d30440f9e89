"""Notification intents, gateways, and the best-effort dispatcher."""

from src.notifications.base import NotificationIntent, NotificationType, Notifier
from src.notifications.dispatcher import NotificationDispatcher
from src.notifications.email_gateway import EmailNotifier, LogNotifier, build_notifier

__all__ = [
    "EmailNotifier",
    "LogNotifier",
    "NotificationDispatcher",
    "NotificationIntent",
    "NotificationType",
    "Notifier",
    "build_notifier",
]
