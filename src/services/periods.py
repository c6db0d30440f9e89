"""Calendar arithmetic shared by the lifecycle and reporting services."""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterator
from datetime import UTC, date, datetime, time, timedelta

Clock = Callable[[], datetime]


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""

    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_start(value: date | datetime) -> date:
    return date(value.year, value.month, 1)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Return the first and last instant of a calendar month in UTC."""

    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=UTC)
    end = datetime.combine(date(year, month, last_day), time.max, tzinfo=UTC)
    return start, end


def as_range_start(value: date | datetime) -> datetime:
    """Normalize a lower bound; bare dates start at midnight UTC."""

    if isinstance(value, datetime):
        return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)
    return datetime.combine(value, time.min, tzinfo=UTC)


def as_range_end(value: date | datetime) -> datetime:
    """Normalize an upper bound; bare dates cover the whole day."""

    if isinstance(value, datetime):
        return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)
    return datetime.combine(value, time.max, tzinfo=UTC)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from ``start`` to ``end`` inclusive."""

    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every month from ``start``'s month through ``end``."""

    current = month_start(start)
    while current <= end:
        yield current
        if current.month == 12:
            current = date(current.year + 1, 1, 1)
        else:
            current = date(current.year, current.month + 1, 1)
