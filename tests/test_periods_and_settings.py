from datetime import UTC, date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.config import Settings
from src.services.periods import (
    add_months,
    as_range_end,
    as_range_start,
    iter_days,
    iter_months,
    month_bounds,
)


@pytest.mark.parametrize(
    ("value", "months", "expected"),
    [
        (datetime(2026, 3, 15, tzinfo=UTC), 6, datetime(2026, 9, 15, tzinfo=UTC)),
        (datetime(2026, 8, 31, tzinfo=UTC), 6, datetime(2027, 2, 28, tzinfo=UTC)),
        (datetime(2026, 1, 31, tzinfo=UTC), -2, datetime(2025, 11, 30, tzinfo=UTC)),
        (datetime(2027, 8, 29, tzinfo=UTC), 6, datetime(2028, 2, 29, tzinfo=UTC)),
    ],
)
def test_add_months_clamps_day(value: datetime, months: int, expected: datetime) -> None:
    assert add_months(value, months) == expected


def test_month_bounds_cover_whole_month() -> None:
    start, end = month_bounds(2024, 2)

    assert start == datetime(2024, 2, 1, tzinfo=UTC)
    assert end.date() == date(2024, 2, 29)
    assert end + timedelta(microseconds=1) == datetime(2024, 3, 1, tzinfo=UTC)


def test_range_bounds_normalize_to_utc() -> None:
    colombo = timezone(timedelta(hours=5, minutes=30))

    assert as_range_start(date(2026, 3, 1)) == datetime(2026, 3, 1, tzinfo=UTC)
    assert as_range_end(date(2026, 3, 1)).date() == date(2026, 3, 1)
    assert as_range_start(datetime(2026, 3, 1, 5, 30, tzinfo=colombo)) == datetime(
        2026, 3, 1, tzinfo=UTC
    )
    assert as_range_end(datetime(2026, 3, 1, 8)) == datetime(2026, 3, 1, 8, tzinfo=UTC)


def test_iterators_are_inclusive() -> None:
    assert len(list(iter_days(date(2026, 2, 27), date(2026, 3, 2)))) == 4
    assert list(iter_months(date(2025, 12, 20), date(2026, 1, 1))) == [
        date(2025, 12, 1),
        date(2026, 1, 1),
    ]


def test_settings_normalize_values() -> None:
    settings = Settings(log_level="debug", frontend_base_url="https://rooms.test///")

    assert settings.log_level == "DEBUG"
    assert settings.frontend_base_url == "https://rooms.test"
    assert settings.listing_ttl_months == 6


def test_settings_reject_unknown_log_level() -> None:
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")
