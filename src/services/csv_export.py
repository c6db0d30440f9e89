"""CSV rendering for the monthly admin reports.

Rendering is a pure function of the rows handed in, so it can be exercised
without a database or an HTTP response.
"""

from __future__ import annotations

import csv
import io
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal

from src.db.repositories import ReviewExportRow
from src.models.listing import Listing
from src.models.user import User

REPORT_TYPES = ("overview", "users", "listings", "reviews")
CSV_MEDIA_TYPE = "text/csv"

_TWO_PLACES = Decimal("0.01")


@dataclass(slots=True)
class ReportRows:
    """Records created inside the reported month."""

    users: Sequence[User] = field(default_factory=list)
    listings: Sequence[Listing] = field(default_factory=list)
    reviews: Sequence[ReviewExportRow] = field(default_factory=list)


def _mean(values: Sequence[Decimal | int]) -> Decimal:
    if not values:
        return Decimal("0.00")
    total = sum((Decimal(value) for value in values), Decimal("0"))
    return (total / len(values)).quantize(_TWO_PLACES, rounding=ROUND_HALF_EVEN)


def _text(value: str | None) -> str:
    return value if value is not None else ""


def _timestamp(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


class _ReportWriter:
    """Two writers over one buffer: headings stay bare, record text is quoted."""

    def __init__(self) -> None:
        self.buffer = io.StringIO()
        self._plain = csv.writer(self.buffer, lineterminator="\n")
        self._quoted = csv.writer(
            self.buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n"
        )

    def heading(self, *cells: object) -> None:
        self._plain.writerow(cells)

    def record(self, *cells: object) -> None:
        self._quoted.writerow(cells)

    def blank(self) -> None:
        self.buffer.write("\n")


def _write_users(writer: _ReportWriter, users: Sequence[User]) -> None:
    writer.heading("Users")
    writer.heading("Id", "Username", "Name", "Email", "Role", "Created At")
    for user in users:
        writer.record(
            user.id,
            _text(user.username),
            _text(user.display_name),
            _text(user.email),
            _text(user.role),
            _timestamp(user.created_at),
        )
    writer.heading("Total Users", len(users))


def _write_listings(writer: _ReportWriter, listings: Sequence[Listing]) -> None:
    writer.heading("Listings")
    writer.heading(
        "Id",
        "Title",
        "Location",
        "Price",
        "Status",
        "Rating",
        "Review Count",
        "Owner Id",
        "Created At",
    )
    for listing in listings:
        writer.record(
            listing.id,
            _text(listing.title),
            _text(listing.location),
            Decimal(listing.price).quantize(_TWO_PLACES),
            _text(listing.status),
            Decimal(listing.rating or 0).quantize(_TWO_PLACES),
            listing.review_count or 0,
            listing.owner_id if listing.owner_id is not None else "",
            _timestamp(listing.created_at),
        )
    writer.heading(
        "Total Listings",
        len(listings),
        "Average Price",
        _mean([Decimal(listing.price) for listing in listings]),
    )


def _write_reviews(writer: _ReportWriter, reviews: Sequence[ReviewExportRow]) -> None:
    writer.heading("Reviews")
    writer.heading(
        "Id", "Listing Id", "Listing Title", "Reviewer", "Rating", "Comment", "Created At"
    )
    for review in reviews:
        writer.record(
            review.id,
            review.listing_id,
            _text(review.listing_title),
            _text(review.reviewer_name),
            review.rating,
            _text(review.text),
            _timestamp(review.created_at),
        )
    writer.heading(
        "Total Reviews",
        len(reviews),
        "Average Rating",
        _mean([review.rating for review in reviews]),
    )


def _write_rating_breakdown(
    writer: _ReportWriter, reviews: Sequence[ReviewExportRow]
) -> None:
    by_listing: dict[int, list[ReviewExportRow]] = defaultdict(list)
    for review in reviews:
        by_listing[review.listing_id].append(review)

    writer.heading("Average Rating by Listing")
    writer.heading("Listing Id", "Listing Title", "Reviews", "Average Rating")
    for listing_id in sorted(by_listing):
        group = by_listing[listing_id]
        writer.record(
            listing_id,
            _text(group[0].listing_title),
            len(group),
            _mean([review.rating for review in group]),
        )


def render_report_csv(report_type: str, rows: ReportRows) -> bytes:
    """Render a report as UTF-8 CSV.

    ``overview`` writes the Users, Listings and Reviews sections separated by a
    blank line. ``users``, ``listings`` and ``reviews`` write their single
    section, and ``reviews`` adds a per-listing average breakdown. Anything
    else renders a three-line count summary.
    """

    writer = _ReportWriter()
    if report_type == "overview":
        _write_users(writer, rows.users)
        writer.blank()
        _write_listings(writer, rows.listings)
        writer.blank()
        _write_reviews(writer, rows.reviews)
    elif report_type == "users":
        _write_users(writer, rows.users)
    elif report_type == "listings":
        _write_listings(writer, rows.listings)
    elif report_type == "reviews":
        _write_reviews(writer, rows.reviews)
        writer.blank()
        _write_rating_breakdown(writer, rows.reviews)
    else:
        writer.heading("Users", len(rows.users))
        writer.heading("Listings", len(rows.listings))
        writer.heading("Ratings", len(rows.reviews))

    return writer.buffer.getvalue().encode("utf-8")


def report_filename(report_type: str, year: int, month: int) -> str:
    name = report_type if report_type in REPORT_TYPES else "summary"
    return f"{name}_report_{year:04d}{month:02d}.csv"
