"""Repository helpers for listing, review, inquiry, and activity persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, aliased

from src.models.activity_log import ActivityLog
from src.models.inquiry import Inquiry
from src.models.listing import Listing
from src.models.review import Review
from src.models.user import User


@dataclass(slots=True)
class ListingInsert:
    """Payload used to insert a new listing."""

    owner_id: int | None
    title: str
    location: str
    price: Decimal
    description: str | None
    facilities: str | None
    status: str
    expires_at: datetime
    created_at: datetime


@dataclass(slots=True)
class ActivityInsert:
    """Payload used to append an activity log row."""

    kind: str
    actor_user_id: int | None = None
    listing_id: int | None = None
    review_id: int | None = None
    inquiry_id: int | None = None
    meta: str | None = None
    at: datetime | None = None


@dataclass(slots=True)
class ActivityFeedItem:
    """Activity row joined with actor and listing display fields."""

    id: int
    at: datetime
    kind: str
    actor_user_id: int | None
    actor_email: str | None
    actor_username: str | None
    listing_id: int | None
    listing_title: str | None
    inquiry_id: int | None
    meta: str | None


@dataclass(slots=True)
class ReviewExportRow:
    """Review joined with listing title and reviewer name for CSV export."""

    id: int
    listing_id: int
    listing_title: str | None
    reviewer_name: str | None
    rating: int
    text: str | None
    created_at: datetime


# ---------------------------------------------------------------- listings


async def insert_listing(session: AsyncSession, row: ListingInsert) -> Listing:
    """Add a listing to the session and flush to obtain its id."""

    listing = Listing(
        owner_id=row.owner_id,
        title=row.title,
        location=row.location,
        price=row.price,
        description=row.description,
        facilities=row.facilities,
        status=row.status,
        expires_at=row.expires_at,
        created_at=row.created_at,
        last_updated=row.created_at,
    )
    session.add(listing)
    await session.flush()
    return listing


async def fetch_listing(session: AsyncSession, listing_id: int) -> Listing | None:
    """Fetch a single listing by id."""

    stmt = select(Listing).where(Listing.id == listing_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def fetch_listings_by_owner(
    session: AsyncSession, owner_id: int, *, limit: int = 500
) -> list[Listing]:
    """Fetch an owner's listings, newest first."""

    stmt = (
        select(Listing)
        .where(Listing.owner_id == owner_id)
        .order_by(Listing.created_at.desc(), Listing.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_listings_by_status(
    session: AsyncSession,
    status: str,
    *,
    offset: int = 0,
    limit: int = 20,
) -> tuple[int, list[Listing]]:
    """Fetch one page of listings in a moderation status plus the total count."""

    total_stmt = select(func.count(Listing.id)).where(Listing.status == status)
    total = (await session.execute(total_stmt)).scalar_one_or_none() or 0

    stmt = (
        select(Listing)
        .where(Listing.status == status)
        .order_by(Listing.created_at.desc(), Listing.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return int(total), list(result.scalars().all())


async def update_listing_aggregate(
    session: AsyncSession,
    listing_id: int,
    *,
    review_count: int,
    rating: Decimal,
    updated_at: datetime,
) -> bool:
    """Persist recomputed review aggregate fields onto a listing."""

    stmt = (
        update(Listing)
        .where(Listing.id == listing_id)
        .values(review_count=review_count, rating=rating, last_updated=updated_at)
    )
    result = await session.execute(stmt)
    await session.commit()
    return cast(int, getattr(result, "rowcount", 0) or 0) > 0


# ---------------------------------------------------------------- reviews


async def fetch_review(session: AsyncSession, review_id: int) -> Review | None:
    """Fetch a single review by id."""

    stmt = select(Review).where(Review.id == review_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def fetch_user_review(
    session: AsyncSession, listing_id: int, user_id: int
) -> Review | None:
    """Fetch the review a user left on a listing, if any."""

    stmt = (
        select(Review)
        .where(Review.listing_id == listing_id)
        .where(Review.user_id == user_id)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def fetch_review_ratings(session: AsyncSession, listing_id: int) -> list[int]:
    """Fetch every star rating recorded for a listing."""

    stmt = select(Review.rating).where(Review.listing_id == listing_id)
    result = await session.execute(stmt)
    return [int(value) for value in result.scalars().all()]


async def fetch_reviews_page(
    session: AsyncSession,
    listing_id: int,
    *,
    sort: str = "recent",
    offset: int = 0,
    limit: int = 10,
) -> tuple[int, list[tuple[Review, str | None]]]:
    """Fetch one page of a listing's reviews with reviewer usernames."""

    total_stmt = select(func.count(Review.id)).where(Review.listing_id == listing_id)
    total = (await session.execute(total_stmt)).scalar_one_or_none() or 0

    stmt = (
        select(Review, User.username)
        .outerjoin(User, User.id == Review.user_id)
        .where(Review.listing_id == listing_id)
    )
    if sort == "top":
        stmt = stmt.order_by(Review.rating.desc(), Review.created_at.desc())
    else:
        stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc())
    stmt = stmt.offset(offset).limit(limit)

    rows = (await session.execute(stmt)).all()
    return int(total), [(row[0], row[1]) for row in rows]


async def delete_review_row(session: AsyncSession, review_id: int) -> bool:
    """Delete a review row."""

    result = await session.execute(delete(Review).where(Review.id == review_id))
    await session.commit()
    return cast(int, getattr(result, "rowcount", 0) or 0) > 0


# ---------------------------------------------------------------- users & inquiries


async def fetch_user(session: AsyncSession, user_id: int) -> User | None:
    """Fetch a single user by id."""

    stmt = select(User).where(User.id == user_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def insert_inquiry(
    session: AsyncSession,
    *,
    listing_id: int,
    from_user_id: int | None,
    message: str,
    created_at: datetime,
) -> Inquiry:
    """Add an inquiry to the session and flush to obtain its id."""

    inquiry = Inquiry(
        listing_id=listing_id,
        from_user_id=from_user_id,
        message=message,
        created_at=created_at,
    )
    session.add(inquiry)
    await session.flush()
    return inquiry


# ---------------------------------------------------------------- activity log


def add_activity(session: AsyncSession, row: ActivityInsert) -> ActivityLog:
    """Stage an activity row inside the caller's transaction."""

    entry = ActivityLog(
        kind=row.kind,
        actor_user_id=row.actor_user_id,
        listing_id=row.listing_id,
        review_id=row.review_id,
        inquiry_id=row.inquiry_id,
        meta=row.meta,
    )
    if row.at is not None:
        entry.at = row.at
    session.add(entry)
    return entry


async def fetch_activity_for_listing(
    session: AsyncSession, listing_id: int, *, kind: str | None = None
) -> list[ActivityLog]:
    """Fetch activity rows referencing a listing, oldest first."""

    stmt = (
        select(ActivityLog)
        .where(ActivityLog.listing_id == listing_id)
        .order_by(ActivityLog.at.asc(), ActivityLog.id.asc())
    )
    if kind:
        stmt = stmt.where(ActivityLog.kind == kind)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_recent_activity(
    session: AsyncSession, limit: int = 50
) -> list[ActivityFeedItem]:
    """Fetch newest activity rows with actor email and listing title."""

    actor = aliased(User)
    stmt = (
        select(
            ActivityLog,
            actor.email,
            actor.username,
            Listing.title,
        )
        .outerjoin(actor, actor.id == ActivityLog.actor_user_id)
        .outerjoin(Listing, Listing.id == ActivityLog.listing_id)
        .order_by(ActivityLog.at.desc(), ActivityLog.id.desc())
        .limit(limit)
    )
    rows = (await session.execute(stmt)).all()
    return [
        ActivityFeedItem(
            id=row[0].id,
            at=row[0].at,
            kind=row[0].kind,
            actor_user_id=row[0].actor_user_id,
            actor_email=row[1],
            actor_username=row[2],
            listing_id=row[0].listing_id,
            listing_title=row[3],
            inquiry_id=row[0].inquiry_id,
            meta=row[0].meta,
        )
        for row in rows
    ]


# ---------------------------------------------------------------- reporting


async def count_rows(
    session: AsyncSession,
    column: InstrumentedAttribute[datetime],
    *,
    since: datetime | None = None,
) -> int:
    """Count rows of the column's table, optionally created at or after ``since``."""

    stmt = select(func.count()).select_from(column.class_)
    if since is not None:
        stmt = stmt.where(column >= since)
    return int((await session.execute(stmt)).scalar_one_or_none() or 0)


async def fetch_timestamps_between(
    session: AsyncSession,
    column: InstrumentedAttribute[datetime],
    start: datetime,
    end: datetime,
) -> list[datetime]:
    """Fetch creation timestamps in the inclusive range for bucketing."""

    stmt = select(column).where(column >= start).where(column <= end)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_users_created_between(
    session: AsyncSession, start: datetime, end: datetime
) -> list[User]:
    stmt = (
        select(User)
        .where(User.created_at >= start)
        .where(User.created_at <= end)
        .order_by(User.created_at.asc(), User.id.asc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def fetch_listings_created_between(
    session: AsyncSession, start: datetime, end: datetime
) -> list[Listing]:
    stmt = (
        select(Listing)
        .where(Listing.created_at >= start)
        .where(Listing.created_at <= end)
        .order_by(Listing.created_at.asc(), Listing.id.asc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def fetch_reviews_created_between(
    session: AsyncSession, start: datetime, end: datetime
) -> list[ReviewExportRow]:
    stmt = (
        select(Review, Listing.title, User)
        .outerjoin(Listing, Listing.id == Review.listing_id)
        .outerjoin(User, User.id == Review.user_id)
        .where(Review.created_at >= start)
        .where(Review.created_at <= end)
        .order_by(Review.created_at.asc(), Review.id.asc())
    )
    rows = (await session.execute(stmt)).all()
    return [
        ReviewExportRow(
            id=row[0].id,
            listing_id=row[0].listing_id,
            listing_title=row[1],
            reviewer_name=row[2].display_name if row[2] is not None else None,
            rating=int(row[0].rating),
            text=row[0].text,
            created_at=row[0].created_at,
        )
        for row in rows
    ]
