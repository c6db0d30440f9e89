"""Review writes and the denormalized rating aggregate on listings."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_HALF_EVEN, Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.repositories import (
    delete_review_row,
    fetch_listing,
    fetch_review,
    fetch_review_ratings,
    fetch_reviews_page,
    fetch_user_review,
    update_listing_aggregate,
)
from src.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from src.models.base import utcnow
from src.models.enums import ActivityKind
from src.models.review import REVIEW_TEXT_MAX_LENGTH, Review
from src.services.activity_service import append_activity
from src.services.periods import Clock

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


@dataclass(slots=True)
class RatingSummary:
    count: int = 0
    average: Decimal = Decimal("0")
    histogram: dict[int, int] = field(
        default_factory=lambda: {stars: 0 for stars in range(1, 6)}
    )


def average_rating(ratings: list[int]) -> Decimal:
    """Mean rating rounded to two places; 0 when there are no ratings."""

    if not ratings:
        return Decimal("0")
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return mean.quantize(_TWO_PLACES, rounding=ROUND_HALF_EVEN)


def _validate_rating(rating: object) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be a whole number between 1 and 5.")
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5.")
    return rating


class ReviewService:
    """Sole writer of ``Listing.rating`` and ``Listing.review_count``."""

    def __init__(self, session: AsyncSession, *, clock: Clock = utcnow) -> None:
        self._session = session
        self._clock = clock

    async def upsert_review(
        self,
        listing_id: int,
        user_id: int,
        rating: int,
        text: str | None = None,
    ) -> Review:
        """Create the user's review of a listing or update it in place."""

        rating = _validate_rating(rating)
        if text is not None:
            text = text.strip() or None
        if text is not None and len(text) > REVIEW_TEXT_MAX_LENGTH:
            raise ValidationError(
                f"Review text must be at most {REVIEW_TEXT_MAX_LENGTH} characters."
            )

        listing = await fetch_listing(self._session, listing_id)
        if listing is None:
            raise NotFoundError(f"Listing {listing_id} not found.")
        if listing.owner_id is not None and listing.owner_id == user_id:
            raise ForbiddenError("Owner cannot review own listing.")

        now = self._clock()
        review = await fetch_user_review(self._session, listing_id, user_id)
        if review is None:
            review = Review(
                listing_id=listing_id,
                user_id=user_id,
                rating=rating,
                text=text,
                created_at=now,
                updated_at=now,
            )
            self._session.add(review)
            try:
                await self._session.flush()
            except IntegrityError as exc:
                await self._session.rollback()
                raise ConflictError(
                    f"User {user_id} already reviewed listing {listing_id}."
                ) from exc
            append_activity(
                self._session,
                ActivityKind.REVIEW_CREATE,
                actor_user_id=user_id,
                listing_id=listing_id,
                review_id=review.id,
                at=now,
            )
        else:
            review.rating = rating
            review.text = text
            review.updated_at = now

        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError(
                f"User {user_id} already reviewed listing {listing_id}."
            ) from exc

        await self.recompute_listing_aggregate(listing_id)
        return review

    async def delete_review(
        self,
        listing_id: int,
        review_id: int,
        acting_user_id: int,
        *,
        is_admin: bool = False,
    ) -> None:
        """Delete a review as its author or as an administrator."""

        review = await fetch_review(self._session, review_id)
        if review is None or review.listing_id != listing_id:
            raise NotFoundError(f"Review {review_id} not found.")
        if not is_admin and review.user_id != acting_user_id:
            raise ForbiddenError("Not your review.")

        await delete_review_row(self._session, review_id)
        await self.recompute_listing_aggregate(listing_id)

    async def recompute_listing_aggregate(self, listing_id: int) -> None:
        """Rescan every rating of a listing and store count and average."""

        ratings = await fetch_review_ratings(self._session, listing_id)
        rating = average_rating(ratings)
        updated = await update_listing_aggregate(
            self._session,
            listing_id,
            review_count=len(ratings),
            rating=rating,
            updated_at=self._clock(),
        )
        if not updated:
            logger.warning(f"Listing {listing_id} vanished before aggregate update")
            return
        logger.debug(
            f"Listing {listing_id} aggregate: count={len(ratings)} rating={rating}"
        )

    async def list_reviews(
        self,
        listing_id: int,
        *,
        page: int = 1,
        page_size: int = 10,
        sort: str = "recent",
    ) -> dict[str, object]:
        page = max(page, 1)
        page_size = min(max(page_size, 1), 100)
        total, rows = await fetch_reviews_page(
            self._session,
            listing_id,
            sort=sort,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return {
            "items": [
                {
                    "id": review.id,
                    "user_id": review.user_id,
                    "username": username,
                    "rating": review.rating,
                    "text": review.text,
                    "created_at": review.created_at.isoformat()
                    if review.created_at
                    else None,
                }
                for review, username in rows
            ],
            "total": total,
            "page": page,
            "page_size": page_size,
        }

    async def rating_summary(self, listing_id: int) -> RatingSummary:
        ratings = await fetch_review_ratings(self._session, listing_id)
        summary = RatingSummary()
        if not ratings:
            return summary

        summary.count = len(ratings)
        summary.average = average_rating(ratings)
        for stars, count in Counter(ratings).items():
            summary.histogram[stars] = count
        return summary
