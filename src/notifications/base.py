"""Notification intents and the gateway interface used to deliver them."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum


class NotificationType(StrEnum):
    LISTING_CREATED = "ListingCreated"
    LISTING_APPROVED = "ListingApproved"
    LISTING_REJECTED = "ListingRejected"
    LISTING_UPDATED = "ListingUpdated"
    NEW_INQUIRY = "NewInquiry"
    REVIEW_ADDED = "ReviewAdded"
    LISTING_EXPIRING = "ListingExpiring"


@dataclass(frozen=True, slots=True)
class NotificationIntent:
    """Ephemeral request to notify a user; built at a transition, never stored."""

    type: NotificationType
    user_id: int
    subject: str
    body: str
    link_url: str | None = None
    listing_id: int | None = None
    inquiry_id: int | None = None


class Notifier(ABC):
    """Base protocol for notification gateways."""

    @abstractmethod
    async def send(self, intent: NotificationIntent, *, recipient: str) -> bool:
        """Deliver a notification intent.

        Args:
            intent: The notification to deliver.
            recipient: Resolved delivery address (e-mail) of ``intent.user_id``.

        Returns:
            True if delivered, False otherwise. Implementations may also raise.
        """
        ...
