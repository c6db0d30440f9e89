"""Tenant inquiries and the owner notification they trigger."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import Settings, get_settings
from src.db.repositories import fetch_listing, insert_inquiry
from src.errors import NotFoundError, ValidationError
from src.models.base import utcnow
from src.models.enums import ActivityKind
from src.models.inquiry import INQUIRY_MESSAGE_MAX_LENGTH, Inquiry
from src.notifications.base import NotificationIntent, NotificationType
from src.notifications.dispatcher import NotificationDispatcher
from src.services.activity_service import append_activity
from src.services.periods import Clock

logger = logging.getLogger(__name__)


class InquiryService:
    def __init__(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher,
        *,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._session = session
        self._dispatcher = dispatcher
        self._settings = settings or get_settings()
        self._clock = clock

    async def create_inquiry(
        self, listing_id: int, message: str, *, from_user_id: int | None = None
    ) -> Inquiry:
        """Store an inquiry, log it, and notify the listing owner."""

        message = (message or "").strip()
        if not message:
            raise ValidationError("Message is required.")
        if len(message) > INQUIRY_MESSAGE_MAX_LENGTH:
            raise ValidationError(
                f"Message must be at most {INQUIRY_MESSAGE_MAX_LENGTH} characters."
            )

        listing = await fetch_listing(self._session, listing_id)
        if listing is None:
            raise NotFoundError("Listing not found")

        now = self._clock()
        inquiry = await insert_inquiry(
            self._session,
            listing_id=listing_id,
            from_user_id=from_user_id,
            message=message,
            created_at=now,
        )
        append_activity(
            self._session,
            ActivityKind.INQUIRY_CREATE,
            actor_user_id=from_user_id,
            listing_id=listing_id,
            inquiry_id=inquiry.id,
            at=now,
        )
        await self._session.commit()
        logger.info(f"Inquiry {inquiry.id} created on listing {listing_id}")

        if listing.owner_id is not None:
            await self._dispatcher.dispatch(
                self._session,
                NotificationIntent(
                    type=NotificationType.NEW_INQUIRY,
                    user_id=listing.owner_id,
                    subject="New inquiry on your listing",
                    body=message,
                    link_url=(
                        f"{self._settings.frontend_base_url}/listings/"
                        f"{listing.id}?tab=inquiries"
                    ),
                    listing_id=listing.id,
                    inquiry_id=inquiry.id,
                ),
            )
        return inquiry
