"""JSON API routes over the lifecycle, review, inquiry, and reporting services."""

from dataclasses import asdict, dataclass
from datetime import date

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import get_db_session
from src.models.enums import UserRole
from src.notifications import NotificationDispatcher, build_notifier
from src.services import (
    ActivityService,
    InquiryService,
    LifecycleService,
    ReportService,
    ReviewService,
)
from src.web.schemas import (
    InquiryCreateRequest,
    ListingCreateRequest,
    ListingPage,
    ListingResponse,
    RejectRequest,
    ReviewUpsertRequest,
)

router = APIRouter(prefix="/api", tags=["api"])


@dataclass(slots=True)
class Actor:
    """Identity forwarded by the authenticating proxy."""

    user_id: int | None
    role: str | None

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == UserRole.ADMIN.value.lower()


def get_actor(
    x_user_id: int | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Actor:
    return Actor(user_id=x_user_id, role=x_user_role)


def require_user(actor: Actor = Depends(get_actor)) -> Actor:
    if actor.user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return actor


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return actor


def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(build_notifier())


# ---------------------------------------------------------------- moderation


@router.get("/admin/listings/pending", response_model=ListingPage)
async def pending_listings(
    page: int = 1,
    page_size: int = 20,
    _: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ListingPage:
    total, listings = await LifecycleService(session, dispatcher).list_pending(
        page=page, page_size=page_size
    )
    return ListingPage(
        total=total, items=[ListingResponse.from_listing(item) for item in listings]
    )


@router.post("/admin/listings/{listing_id}/approve")
async def approve_listing(
    listing_id: int,
    actor: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> dict[str, bool]:
    await LifecycleService(session, dispatcher).approve_listing(
        listing_id, acting_user_id=actor.user_id
    )
    return {"ok": True}


@router.post("/admin/listings/{listing_id}/reject")
async def reject_listing(
    listing_id: int,
    body: RejectRequest | None = None,
    actor: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> dict[str, bool]:
    await LifecycleService(session, dispatcher).reject_listing(
        listing_id,
        body.reason if body else None,
        acting_user_id=actor.user_id,
    )
    return {"ok": True}


# ---------------------------------------------------------------- listings


@router.post(
    "/listings", response_model=ListingResponse, status_code=status.HTTP_201_CREATED
)
async def create_listing(
    body: ListingCreateRequest,
    actor: Actor = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ListingResponse:
    listing = await LifecycleService(session, dispatcher).create_listing(
        actor.user_id,
        title=body.title,
        location=body.location,
        price=body.price,
        description=body.description,
        facilities=body.facilities,
    )
    return ListingResponse.from_listing(listing)


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: int,
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ListingResponse:
    listing = await LifecycleService(session, dispatcher).get_listing(listing_id)
    return ListingResponse.from_listing(listing)


@router.post("/listings/{listing_id}/renew")
async def renew_listing(
    listing_id: int,
    actor: Actor = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> dict[str, object]:
    listing = await LifecycleService(session, dispatcher).renew_listing(
        listing_id, actor.user_id
    )
    return {"ok": True, "expires_at": listing.expires_at.isoformat()}


@router.get("/owners/me/summary")
async def owner_summary(
    actor: Actor = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> dict[str, int]:
    summary = await LifecycleService(session, dispatcher).owner_dashboard_summary(
        actor.user_id
    )
    return asdict(summary)


# ---------------------------------------------------------------- reviews


@router.put("/listings/{listing_id}/reviews")
async def upsert_review(
    listing_id: int,
    body: ReviewUpsertRequest,
    actor: Actor = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, object]:
    review = await ReviewService(session).upsert_review(
        listing_id, actor.user_id, body.rating, body.text
    )
    return {
        "id": review.id,
        "listing_id": review.listing_id,
        "user_id": review.user_id,
        "rating": review.rating,
        "text": review.text,
        "created_at": review.created_at.isoformat(),
        "updated_at": review.updated_at.isoformat(),
    }


@router.delete(
    "/listings/{listing_id}/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_review(
    listing_id: int,
    review_id: int,
    actor: Actor = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await ReviewService(session).delete_review(
        listing_id, review_id, actor.user_id, is_admin=actor.is_admin
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/listings/{listing_id}/reviews")
async def list_reviews(
    listing_id: int,
    page: int = 1,
    page_size: int = 10,
    sort: str = "recent",
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, object]:
    return await ReviewService(session).list_reviews(
        listing_id, page=page, page_size=page_size, sort=sort
    )


@router.get("/listings/{listing_id}/reviews/summary")
async def rating_summary(
    listing_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, object]:
    summary = await ReviewService(session).rating_summary(listing_id)
    return {
        "count": summary.count,
        "average": float(summary.average),
        "histogram": summary.histogram,
    }


# ---------------------------------------------------------------- inquiries


@router.post("/inquiries", status_code=status.HTTP_201_CREATED)
async def create_inquiry(
    body: InquiryCreateRequest,
    actor: Actor = Depends(get_actor),
    session: AsyncSession = Depends(get_db_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> dict[str, int]:
    inquiry = await InquiryService(session, dispatcher).create_inquiry(
        body.listing_id, body.message, from_user_id=actor.user_id
    )
    return {"id": inquiry.id}


# ---------------------------------------------------------------- reports


@router.get("/admin/reports/kpis")
async def report_kpis(
    _: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, int]:
    kpis = await ReportService(session).get_kpis()
    return {
        "totalUsers": kpis.total_users,
        "totalListings": kpis.total_listings,
        "newListings30": kpis.new_listings_30,
        "reviews30": kpis.reviews_30,
        "inquiries30": kpis.inquiries_30,
    }


@router.get("/admin/reports/series")
async def report_series(
    entity: str | None = None,
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
    days: int | None = None,
    _: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> list[dict[str, object]]:
    points = await ReportService(session).get_series(
        entity, start=start, end=end, days=days
    )
    return [{"date": point.day.isoformat(), "count": point.count} for point in points]


@router.get("/admin/reports/monthly")
async def report_monthly(
    entity: str | None = None,
    start: date | None = Query(default=None, alias="from"),
    end: date | None = Query(default=None, alias="to"),
    months: int | None = None,
    _: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> list[dict[str, object]]:
    points = await ReportService(session).get_monthly(
        entity, start=start, end=end, months=months
    )
    return [asdict(point) for point in points]


@router.get("/admin/reports/export/csv")
async def report_export_csv(
    year: int,
    month: int,
    report_type: str = Query(default="overview", alias="reportType"),
    _: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    export = await ReportService(session).export_csv(report_type, year, month)
    return Response(
        content=export.content,
        media_type=f"{export.media_type}; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={export.filename}"},
    )


@router.get("/admin/activity/recent")
async def recent_activity(
    limit: int | None = None,
    _: Actor = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> list[dict[str, object]]:
    return await ActivityService(session).recent_activity_payload(limit)
