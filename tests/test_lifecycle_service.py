"""Tests for listing moderation transitions and lazy expiry."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.db.repositories import fetch_activity_for_listing, fetch_listing
from src.errors import ForbiddenError, NotFoundError, ValidationError
from src.models import ActivityKind, ListingStatus, UserRole
from src.models.base import ensure_utc
from src.notifications import NotificationDispatcher, NotificationType, Notifier
from src.services import LifecycleService
from src.services.periods import add_months


@pytest.fixture
def service(session, dispatcher, settings, clock) -> LifecycleService:
    return LifecycleService(session, dispatcher, settings=settings, clock=clock)


@pytest.mark.anyio
async def test_approve_sets_status_logs_once_and_notifies_owner(
    service, session, notifier, make_user, make_listing
) -> None:
    owner = await make_user("owner", role=UserRole.OWNER)
    admin = await make_user("admin", role=UserRole.ADMIN)
    listing = await make_listing(owner)

    result = await service.approve_listing(listing.id, acting_user_id=admin.id)

    assert result.status == ListingStatus.APPROVED
    entries = await fetch_activity_for_listing(
        session, listing.id, kind=ActivityKind.LISTING_APPROVE.value
    )
    assert len(entries) == 1
    assert entries[0].actor_user_id == admin.id

    assert len(notifier.sent) == 1
    intent, recipient = notifier.sent[0]
    assert intent.type == NotificationType.LISTING_APPROVED
    assert intent.user_id == owner.id
    assert recipient == "owner@example.com"
    assert intent.link_url == f"https://boardingbee.test/listings/{listing.id}"


@pytest.mark.anyio
async def test_approve_twice_logs_two_entries(
    service, session, make_user, make_listing
) -> None:
    owner = await make_user("owner")
    listing = await make_listing(owner)

    first = await service.approve_listing(listing.id)
    assert first.status == ListingStatus.APPROVED
    second = await service.approve_listing(listing.id)
    assert second.status == ListingStatus.APPROVED

    entries = await fetch_activity_for_listing(
        session, listing.id, kind=ActivityKind.LISTING_APPROVE.value
    )
    assert len(entries) == 2


@pytest.mark.anyio
async def test_approve_expired_listing_has_no_state_guard(
    service, make_user, make_listing, clock
) -> None:
    owner = await make_user("owner")
    listing = await make_listing(
        owner,
        status=ListingStatus.EXPIRED,
        expires_at=clock.now - timedelta(days=3),
    )

    result = await service.approve_listing(listing.id)

    assert result.status == ListingStatus.APPROVED


@pytest.mark.anyio
async def test_approve_orphaned_listing_sends_nothing(
    service, notifier, make_listing
) -> None:
    listing = await make_listing(None)

    result = await service.approve_listing(listing.id)

    assert result.status == ListingStatus.APPROVED
    assert notifier.sent == []


@pytest.mark.anyio
async def test_approve_unknown_listing_raises_not_found(service) -> None:
    with pytest.raises(NotFoundError):
        await service.approve_listing(9999)


@pytest.mark.anyio
async def test_reject_keeps_status_when_gateway_raises(
    session, session_factory, settings, clock, make_user, make_listing
) -> None:
    gateway = AsyncMock(spec=Notifier)
    gateway.send.side_effect = RuntimeError("smtp down")
    service = LifecycleService(
        session, NotificationDispatcher(gateway), settings=settings, clock=clock
    )
    owner = await make_user("owner")
    listing = await make_listing(owner)

    result = await service.reject_listing(listing.id, "bad photos")

    assert result.status == ListingStatus.REJECTED
    gateway.send.assert_awaited_once()
    intent = gateway.send.await_args.args[0]
    assert intent.type == NotificationType.LISTING_REJECTED
    assert "bad photos" in intent.body
    assert intent.link_url == f"https://boardingbee.test/edit-listing/{listing.id}"

    async with session_factory() as other:
        stored = await fetch_listing(other, listing.id)
        assert stored is not None
        assert stored.status == ListingStatus.REJECTED


@pytest.mark.anyio
async def test_reject_without_reason_says_not_specified(
    service, session, notifier, make_user, make_listing
) -> None:
    owner = await make_user("owner")
    listing = await make_listing(owner)

    await service.reject_listing(listing.id)

    intent, _ = notifier.sent[0]
    assert intent.body.endswith("Reason: not specified")
    entries = await fetch_activity_for_listing(
        session, listing.id, kind=ActivityKind.LISTING_REJECT.value
    )
    assert entries[0].meta is None


@pytest.mark.anyio
async def test_renew_by_other_user_is_forbidden_and_changes_nothing(
    service, session, session_factory, make_user, make_listing, clock
) -> None:
    owner = await make_user("owner-a")
    intruder = await make_user("user-b")
    listing = await make_listing(owner, status=ListingStatus.REJECTED)
    original_expiry = listing.expires_at

    with pytest.raises(ForbiddenError):
        await service.renew_listing(listing.id, intruder.id)

    async with session_factory() as other:
        stored = await fetch_listing(other, listing.id)
        assert stored is not None
        assert stored.status == ListingStatus.REJECTED
        assert ensure_utc(stored.expires_at) == original_expiry

    renewals = await fetch_activity_for_listing(
        session, listing.id, kind=ActivityKind.LISTING_RENEW.value
    )
    assert renewals == []


@pytest.mark.anyio
async def test_renew_orphaned_listing_is_forbidden(
    service, make_user, make_listing
) -> None:
    someone = await make_user("someone")
    listing = await make_listing(None)

    with pytest.raises(ForbiddenError):
        await service.renew_listing(listing.id, someone.id)


@pytest.mark.anyio
async def test_create_reject_renew_end_to_end(
    service, session, notifier, make_user, clock
) -> None:
    owner = await make_user("owner", role=UserRole.OWNER)

    listing = await service.create_listing(
        owner.id, title="Room with balcony", location="Peradeniya", price="18000"
    )
    assert listing.status == ListingStatus.PENDING
    assert listing.price == Decimal("18000.00")

    await service.reject_listing(listing.id, "blurry images")
    assert listing.status == ListingStatus.REJECTED
    rejections = await fetch_activity_for_listing(
        session, listing.id, kind=ActivityKind.LISTING_REJECT.value
    )
    assert [entry.meta for entry in rejections] == ["blurry images"]
    assert [intent.type for intent, _ in notifier.sent] == [
        NotificationType.LISTING_REJECTED
    ]
    assert notifier.sent[0][0].user_id == owner.id

    clock.advance(days=2)
    renewed = await service.renew_listing(listing.id, owner.id)

    assert renewed.status == ListingStatus.APPROVED
    assert ensure_utc(renewed.expires_at) == add_months(clock.now, 6)
    kinds = [entry.kind for entry in await fetch_activity_for_listing(session, listing.id)]
    assert kinds == [
        ActivityKind.LISTING_CREATE,
        ActivityKind.LISTING_REJECT,
        ActivityKind.LISTING_RENEW,
    ]


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("fields", "message"),
    [
        ({"title": " ", "location": "Kandy", "price": "100"}, "Title"),
        ({"title": "Room", "location": "", "price": "100"}, "Location"),
        ({"title": "Room", "location": "Kandy", "price": "-1"}, "non-negative"),
        ({"title": "Room", "location": "Kandy", "price": "abc"}, "Invalid price"),
    ],
)
async def test_create_listing_validates_fields(
    service, make_user, fields: dict[str, str], message: str
) -> None:
    owner = await make_user("owner")

    with pytest.raises(ValidationError, match=message):
        await service.create_listing(owner.id, **fields)


@pytest.mark.anyio
async def test_get_listing_expires_approved_listing_past_expiry(
    service, session_factory, make_user, make_listing, clock
) -> None:
    owner = await make_user("owner")
    listing = await make_listing(
        owner,
        status=ListingStatus.APPROVED,
        expires_at=clock.now - timedelta(minutes=1),
    )

    result = await service.get_listing(listing.id)

    assert result.status == ListingStatus.EXPIRED
    async with session_factory() as other:
        stored = await fetch_listing(other, listing.id)
        assert stored is not None
        assert stored.status == ListingStatus.EXPIRED


@pytest.mark.anyio
async def test_lazy_expiry_leaves_other_statuses_alone(
    service, make_user, make_listing, clock
) -> None:
    owner = await make_user("owner")
    past = clock.now - timedelta(days=1)
    pending = await make_listing(owner, status=ListingStatus.PENDING, expires_at=past)
    rejected = await make_listing(owner, status=ListingStatus.REJECTED, expires_at=past)
    active = await make_listing(
        owner, status=ListingStatus.APPROVED, expires_at=clock.now + timedelta(days=1)
    )

    listings = await service.list_owner_listings(owner.id)

    statuses = {listing.id: listing.status for listing in listings}
    assert statuses == {
        pending.id: ListingStatus.PENDING,
        rejected.id: ListingStatus.REJECTED,
        active.id: ListingStatus.APPROVED,
    }


@pytest.mark.anyio
async def test_owner_dashboard_summary_counts_after_expiry(
    service, make_user, make_listing, clock
) -> None:
    owner = await make_user("owner")
    other_owner = await make_user("other")
    await make_listing(owner, status=ListingStatus.PENDING)
    await make_listing(owner, status=ListingStatus.REJECTED)
    await make_listing(
        owner, status=ListingStatus.APPROVED, expires_at=clock.now + timedelta(days=9)
    )
    await make_listing(
        owner, status=ListingStatus.APPROVED, expires_at=clock.now - timedelta(days=9)
    )
    await make_listing(other_owner, status=ListingStatus.APPROVED)

    summary = await service.owner_dashboard_summary(owner.id)

    assert (summary.total, summary.approved, summary.pending) == (4, 1, 1)
    assert (summary.rejected, summary.expired) == (1, 1)


@pytest.mark.anyio
async def test_list_pending_pages_newest_first(
    service, make_user, make_listing, clock
) -> None:
    owner = await make_user("owner")
    oldest = await make_listing(owner, created_at=clock.now - timedelta(days=3))
    middle = await make_listing(owner, created_at=clock.now - timedelta(days=2))
    newest = await make_listing(owner, created_at=clock.now - timedelta(days=1))
    await make_listing(owner, status=ListingStatus.APPROVED)

    total, first_page = await service.list_pending(page=1, page_size=2)
    _, second_page = await service.list_pending(page=2, page_size=2)

    assert total == 3
    assert [listing.id for listing in first_page] == [newest.id, middle.id]
    assert [listing.id for listing in second_page] == [oldest.id]


@pytest.mark.anyio
async def test_list_pending_keeps_overdue_pending_listing(
    service, make_user, make_listing, clock
) -> None:
    owner = await make_user("owner")
    overdue = await make_listing(owner, expires_at=clock.now - timedelta(days=30))

    total, listings = await service.list_pending()

    assert total == 1
    assert [(listing.id, listing.status) for listing in listings] == [
        (overdue.id, ListingStatus.PENDING)
    ]
