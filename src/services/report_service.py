"""Dashboard KPIs, zero-filled time series, monthly rollups, and CSV exports.

Every query here is read-only and tolerant of bad filters: an unknown entity
falls back to the activity log, ``revenue`` is a zero series, and an unknown
report type renders a summary. Charts always get a contiguous x-axis.
"""

from __future__ import annotations

import calendar
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from src.config import Settings, get_settings
from src.db.repositories import (
    count_rows,
    fetch_listings_created_between,
    fetch_reviews_created_between,
    fetch_timestamps_between,
    fetch_users_created_between,
)
from src.models.activity_log import ActivityLog
from src.models.base import ensure_utc, utcnow
from src.models.inquiry import Inquiry
from src.models.listing import Listing
from src.models.review import Review
from src.models.user import User
from src.services.csv_export import (
    CSV_MEDIA_TYPE,
    REPORT_TYPES,
    ReportRows,
    render_report_csv,
    report_filename,
)
from src.services.lifecycle_service import apply_lazy_expiry
from src.services.periods import (
    Clock,
    add_months,
    as_range_end,
    as_range_start,
    iter_days,
    iter_months,
    month_bounds,
    month_start,
)

logger = logging.getLogger(__name__)

ACTIVITY_ENTITY = "activity"
REVENUE_ENTITY = "revenue"

_ENTITY_COLUMNS: dict[str, InstrumentedAttribute[datetime]] = {
    "users": User.created_at,
    "listings": Listing.created_at,
    "reviews": Review.created_at,
    ACTIVITY_ENTITY: ActivityLog.at,
}


@dataclass(slots=True)
class Kpis:
    total_users: int
    total_listings: int
    new_listings_30: int
    reviews_30: int
    inquiries_30: int


@dataclass(slots=True)
class SeriesPoint:
    day: date
    count: int


@dataclass(slots=True)
class MonthlyPoint:
    label: str
    year: int
    month: int
    count: int


@dataclass(slots=True)
class CsvExport:
    filename: str
    content: bytes
    media_type: str = CSV_MEDIA_TYPE


def resolve_entity(entity: str | None) -> str:
    """Map a selector to a known entity, falling back to the activity log."""

    key = (entity or "").strip().lower()
    if key == REVENUE_ENTITY or key in _ENTITY_COLUMNS:
        return key
    logger.info(f"Unknown report entity {entity!r}, using activity log")
    return ACTIVITY_ENTITY


def _ordered(
    start: date | datetime | None, end: date | datetime | None
) -> tuple[date | datetime | None, date | datetime | None]:
    if start is not None and end is not None:
        if as_range_start(start) > as_range_start(end):
            return end, start
    return start, end


class ReportService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._clock = clock

    async def get_kpis(self) -> Kpis:
        since = self._clock() - timedelta(days=self._settings.kpi_window_days)
        return Kpis(
            total_users=await count_rows(self._session, User.created_at),
            total_listings=await count_rows(self._session, Listing.created_at),
            new_listings_30=await count_rows(
                self._session, Listing.created_at, since=since
            ),
            reviews_30=await count_rows(self._session, Review.created_at, since=since),
            inquiries_30=await count_rows(
                self._session, Inquiry.created_at, since=since
            ),
        )

    async def get_series(
        self,
        entity: str | None,
        *,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
        days: int | None = None,
    ) -> list[SeriesPoint]:
        """Return one count per calendar day in the range, zero-filled."""

        if days is None or days < 1:
            days = self._settings.report_default_days
        start, end = _ordered(start, end)
        now = self._clock()
        range_end = as_range_end(end) if end is not None else now
        range_start = (
            as_range_start(start) if start is not None else now - timedelta(days=days)
        )
        if range_start > range_end:
            range_start, range_end = range_end, range_start

        counts = await self._day_counts(resolve_entity(entity), range_start, range_end)
        first_day = range_start.date()
        last_day = range_end.date()
        return [
            SeriesPoint(day=day, count=counts.get(day, 0))
            for day in iter_days(first_day, last_day)
        ]

    async def get_monthly(
        self,
        entity: str | None,
        *,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
        months: int | None = None,
    ) -> list[MonthlyPoint]:
        """Return one count per calendar month in the range, zero-filled."""

        if months is None or months < 1:
            months = self._settings.report_default_months
        start, end = _ordered(start, end)
        range_end = as_range_end(end) if end is not None else self._clock()
        if start is not None:
            range_start = as_range_start(start)
        else:
            range_start = as_range_start(
                month_start(add_months(range_end, -(months - 1)))
            )
        if range_start > range_end:
            range_start, range_end = range_end, range_start

        day_counts = await self._day_counts(
            resolve_entity(entity), range_start, range_end
        )
        month_counts: Counter[tuple[int, int]] = Counter()
        for day, count in day_counts.items():
            month_counts[(day.year, day.month)] += count

        return [
            MonthlyPoint(
                label=calendar.month_abbr[first.month],
                year=first.year,
                month=first.month,
                count=month_counts.get((first.year, first.month), 0),
            )
            for first in iter_months(range_start.date(), range_end.date())
        ]

    async def export_csv(self, report_type: str | None, year: int, month: int) -> CsvExport:
        """Render the month's report; an invalid month means the current one."""

        if not 1 <= month <= 12 or not 1 <= year <= 9999:
            now = self._clock()
            logger.warning(
                f"Invalid export period {year}-{month}, using {now.year}-{now.month}"
            )
            year, month = now.year, now.month

        kind = (report_type or "overview").strip().lower()
        start, end = month_bounds(year, month)

        if kind not in REPORT_TYPES:
            logger.info(f"Unknown report type {report_type!r}, exporting summary")

        # overview and the summary fallback both need every section
        every_section = kind not in ("users", "listings", "reviews")
        rows = ReportRows()
        if every_section or kind == "users":
            rows.users = await fetch_users_created_between(self._session, start, end)
        if every_section or kind == "listings":
            rows.listings = await fetch_listings_created_between(
                self._session, start, end
            )
            await apply_lazy_expiry(self._session, rows.listings, self._clock())
        if every_section or kind == "reviews":
            rows.reviews = await fetch_reviews_created_between(self._session, start, end)

        return CsvExport(
            filename=report_filename(kind, year, month),
            content=render_report_csv(kind, rows),
        )

    async def _day_counts(
        self, entity: str, start: datetime, end: datetime
    ) -> Counter[date]:
        if entity == REVENUE_ENTITY:
            # No ledger backs revenue yet; the series is all zeros.
            return Counter()
        timestamps = await fetch_timestamps_between(
            self._session, _ENTITY_COLUMNS[entity], start, end
        )
        return Counter(ensure_utc(value).date() for value in timestamps)
