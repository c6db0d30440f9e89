"""Listing moderation state machine: approve, reject, renew, and lazy expiry."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import Settings, get_settings
from src.db.repositories import (
    ListingInsert,
    fetch_listing,
    fetch_listings_by_owner,
    fetch_listings_by_status,
    insert_listing,
)
from src.errors import ForbiddenError, NotFoundError, ValidationError
from src.models.base import ensure_utc, utcnow
from src.models.enums import ActivityKind, ListingStatus
from src.models.listing import Listing
from src.notifications.base import NotificationIntent, NotificationType
from src.notifications.dispatcher import NotificationDispatcher
from src.services.activity_service import append_activity
from src.services.periods import Clock, add_months

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OwnerDashboardSummary:
    total: int
    approved: int
    pending: int
    rejected: int
    expired: int


async def apply_lazy_expiry(
    session: AsyncSession, listings: Sequence[Listing], now: datetime
) -> int:
    """Persist Approved -> Expired for every listing whose expiry has passed.

    Every read path that reports a listing's status goes through here, so an
    Approved listing is never shown as active after ``expires_at``.
    """

    expired = 0
    for listing in listings:
        if listing.status != ListingStatus.APPROVED:
            continue
        if ensure_utc(listing.expires_at) >= now:
            continue
        listing.status = ListingStatus.EXPIRED.value
        listing.last_updated = now
        expired += 1

    if expired:
        await session.commit()
        logger.info(f"Lazily expired {expired} listing(s)")
    return expired


def _parse_price(value: Decimal | int | float | str) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid price: {value!r}") from exc
    if not price.is_finite() or price < 0:
        raise ValidationError("Price must be a non-negative amount.")
    return price.quantize(Decimal("0.01"))


class LifecycleService:
    """Owns ``Listing.status`` and ``Listing.expires_at``.

    Each transition commits the status change together with its activity log
    entry, then hands a notification intent to the dispatcher. Delivery
    failures never fail or revert the transition.
    """

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

    # ------------------------------------------------------------ transitions

    async def create_listing(
        self,
        owner_id: int | None,
        *,
        title: str,
        location: str,
        price: Decimal | int | float | str,
        description: str | None = None,
        facilities: str | None = None,
    ) -> Listing:
        """Insert a new listing in Pending status awaiting moderation."""

        title = (title or "").strip()
        location = (location or "").strip()
        if not title:
            raise ValidationError("Title is required.")
        if not location:
            raise ValidationError("Location is required.")

        now = self._clock()
        listing = await insert_listing(
            self._session,
            ListingInsert(
                owner_id=owner_id,
                title=title,
                location=location,
                price=_parse_price(price),
                description=description,
                facilities=facilities,
                status=ListingStatus.PENDING.value,
                expires_at=add_months(now, self._settings.listing_ttl_months),
                created_at=now,
            ),
        )
        append_activity(
            self._session,
            ActivityKind.LISTING_CREATE,
            actor_user_id=owner_id,
            listing_id=listing.id,
            at=now,
        )
        await self._session.commit()
        logger.info(f"Listing {listing.id} created by owner {owner_id}")
        return listing

    async def approve_listing(
        self, listing_id: int, *, acting_user_id: int | None = None
    ) -> Listing:
        """Mark a listing Approved, whatever its current status."""

        listing = await self._require_listing(listing_id)
        now = self._clock()

        listing.status = ListingStatus.APPROVED.value
        listing.last_updated = now
        append_activity(
            self._session,
            ActivityKind.LISTING_APPROVE,
            actor_user_id=acting_user_id,
            listing_id=listing.id,
            at=now,
        )
        await self._session.commit()
        logger.info(f"Listing {listing.id} approved")

        if listing.owner_id is not None:
            await self._dispatcher.dispatch(
                self._session,
                NotificationIntent(
                    type=NotificationType.LISTING_APPROVED,
                    user_id=listing.owner_id,
                    subject="Listing approved",
                    body=f"Your listing '{listing.title}' was approved.",
                    link_url=f"{self._settings.frontend_base_url}/listings/{listing.id}",
                    listing_id=listing.id,
                ),
            )
        return listing

    async def reject_listing(
        self,
        listing_id: int,
        reason: str | None = None,
        *,
        acting_user_id: int | None = None,
    ) -> Listing:
        """Mark a listing Rejected and tell the owner why."""

        listing = await self._require_listing(listing_id)
        now = self._clock()

        listing.status = ListingStatus.REJECTED.value
        listing.last_updated = now
        append_activity(
            self._session,
            ActivityKind.LISTING_REJECT,
            actor_user_id=acting_user_id,
            listing_id=listing.id,
            meta=reason,
            at=now,
        )
        await self._session.commit()
        logger.info(f"Listing {listing.id} rejected: {reason or '-'}")

        if listing.owner_id is not None:
            await self._dispatcher.dispatch(
                self._session,
                NotificationIntent(
                    type=NotificationType.LISTING_REJECTED,
                    user_id=listing.owner_id,
                    subject="Listing needs changes",
                    body=(
                        f"Your listing '{listing.title}' needs updates. "
                        f"Reason: {reason or 'not specified'}"
                    ),
                    link_url=(
                        f"{self._settings.frontend_base_url}/edit-listing/{listing.id}"
                    ),
                    listing_id=listing.id,
                ),
            )
        return listing

    async def renew_listing(self, listing_id: int, acting_user_id: int) -> Listing:
        """Extend a listing's expiry and re-approve it. Owner only."""

        listing = await self._require_listing(listing_id)
        if listing.owner_id is None or listing.owner_id != acting_user_id:
            raise ForbiddenError("You cannot renew another owner's listing.")

        now = self._clock()
        listing.expires_at = add_months(now, self._settings.listing_ttl_months)
        listing.status = ListingStatus.APPROVED.value
        listing.last_updated = now
        append_activity(
            self._session,
            ActivityKind.LISTING_RENEW,
            actor_user_id=acting_user_id,
            listing_id=listing.id,
            at=now,
        )
        await self._session.commit()
        logger.info(f"Listing {listing.id} renewed until {listing.expires_at.isoformat()}")
        return listing

    # ------------------------------------------------------------ reads

    async def get_listing(self, listing_id: int) -> Listing:
        listing = await self._require_listing(listing_id)
        await apply_lazy_expiry(self._session, [listing], self._clock())
        return listing

    async def list_owner_listings(self, owner_id: int) -> list[Listing]:
        listings = await fetch_listings_by_owner(self._session, owner_id)
        await apply_lazy_expiry(self._session, listings, self._clock())
        return listings

    async def list_pending(
        self, *, page: int = 1, page_size: int = 20
    ) -> tuple[int, list[Listing]]:
        """Return the moderation queue, newest first."""

        page = max(page, 1)
        page_size = min(max(page_size, 1), 200)
        total, listings = await fetch_listings_by_status(
            self._session,
            ListingStatus.PENDING.value,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return total, listings

    async def owner_dashboard_summary(self, owner_id: int) -> OwnerDashboardSummary:
        listings = await self.list_owner_listings(owner_id)
        statuses = [listing.status for listing in listings]
        return OwnerDashboardSummary(
            total=len(statuses),
            approved=statuses.count(ListingStatus.APPROVED),
            pending=statuses.count(ListingStatus.PENDING),
            rejected=statuses.count(ListingStatus.REJECTED),
            expired=statuses.count(ListingStatus.EXPIRED),
        )

    async def _require_listing(self, listing_id: int) -> Listing:
        listing = await fetch_listing(self._session, listing_id)
        if listing is None:
            raise NotFoundError(f"Listing {listing_id} not found.")
        return listing
