"""Write and read sides of the append-only activity log."""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import Settings, get_settings
from src.db.repositories import (
    ActivityFeedItem,
    ActivityInsert,
    add_activity,
    fetch_recent_activity,
)
from src.models.activity_log import ActivityLog
from src.models.enums import ActivityKind

MAX_RECENT_LIMIT = 500


def append_activity(
    session: AsyncSession,
    kind: ActivityKind | str,
    *,
    actor_user_id: int | None = None,
    listing_id: int | None = None,
    review_id: int | None = None,
    inquiry_id: int | None = None,
    meta: str | None = None,
    at: datetime | None = None,
) -> ActivityLog:
    """Stage an activity entry; the caller's commit makes it durable."""

    return add_activity(
        session,
        ActivityInsert(
            kind=ActivityKind(kind).value,
            actor_user_id=actor_user_id,
            listing_id=listing_id,
            review_id=review_id,
            inquiry_id=inquiry_id,
            meta=meta,
            at=at,
        ),
    )


class ActivityService:
    def __init__(self, session: AsyncSession, *, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    async def recent_activity(self, limit: int | None = None) -> list[ActivityFeedItem]:
        """Return the newest activity entries first."""

        if limit is None:
            limit = self._settings.activity_recent_limit
        limit = min(max(limit, 1), MAX_RECENT_LIMIT)
        return await fetch_recent_activity(self._session, limit=limit)

    async def recent_activity_payload(
        self, limit: int | None = None
    ) -> list[dict[str, object]]:
        items = await self.recent_activity(limit)
        return [
            {
                "id": item.id,
                "at": item.at.isoformat() if item.at else None,
                "kind": item.kind,
                "actor_user_id": item.actor_user_id,
                "actor_email": item.actor_email,
                "actor_username": item.actor_username,
                "listing_id": item.listing_id,
                "listing_title": item.listing_title,
                "inquiry_id": item.inquiry_id,
                "meta": item.meta,
            }
            for item in items
        ]
