from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

pytestmark = pytest.mark.unit

from moodiary.core.utils.dates import to_date, to_date_key
from moodiary.domains.diaries.services.calendar_lookup import (
    CalendarLookup,
    entries_by_date,
    shift_month,
)

DATES = ["2024-12-14", "2024-12-15", "2025-01-01"]


def test_round_trip_membership():
    lookup = CalendarLookup(DATES)
    assert all(lookup.has_entry(day) for day in DATES)
    assert not lookup.has_entry("2024-12-16")
    assert lookup.dates() == DATES
    assert len(lookup) == 3


def test_accepts_dates_datetimes_and_strings():
    lookup = CalendarLookup([date(2024, 12, 14)])
    assert lookup.has_entry(datetime(2024, 12, 14, 23, 59))
    assert lookup.has_entry("2024-12-14T08:00:00")
    # Aware values are moved to UTC first.
    assert lookup.has_entry(datetime(2024, 12, 15, 2, 0, tzinfo=timezone(timedelta(hours=3))))
    assert not lookup.has_entry(datetime(2024, 12, 14, 22, 0, tzinfo=timezone(timedelta(hours=-3))))


@pytest.mark.parametrize(
    "text, aware",
    [
        ("2024-12-15T01:30:00+05:00", datetime(2024, 12, 15, 1, 30, tzinfo=timezone(timedelta(hours=5)))),
        ("2024-12-14T22:00:00-03:00", datetime(2024, 12, 14, 22, 0, tzinfo=timezone(timedelta(hours=-3)))),
        ("2024-12-14T23:59:00Z", datetime(2024, 12, 14, 23, 59, tzinfo=timezone.utc)),
    ],
)
def test_offset_strings_match_their_datetimes(text, aware):
    assert to_date(text) == to_date(aware)
    lookup = CalendarLookup(["2024-12-14"])
    assert lookup.has_entry(text) == lookup.has_entry(aware)


def test_offset_string_day_is_taken_in_utc():
    assert to_date_key("2024-12-15T01:30:00+05:00") == "2024-12-14"
    assert to_date_key("2024-12-15T01:30:00") == "2024-12-15"


def test_contains_is_false_for_garbage():
    lookup = CalendarLookup(DATES)
    assert "2024-12-14" in lookup
    assert "yesterday" not in lookup
    assert 42 not in lookup


def test_invalid_strings_raise():
    with pytest.raises(ValueError):
        to_date("14/12/2024")
    assert to_date_key(date(2024, 3, 5)) == "2024-03-05"


def test_month_grid_marks_days_with_entries():
    grid = CalendarLookup(DATES).month_grid(2024, 12)
    # December 2024 starts on a Sunday: six padding cells in the first week.
    assert grid[0][:6] == [(None, False)] * 6
    assert grid[0][6] == (date(2024, 12, 1), False)
    marked = [day for week in grid for day, has_entry in week if has_entry]
    assert marked == [date(2024, 12, 14), date(2024, 12, 15)]
    assert all(len(week) == 7 for week in grid)


def test_entries_by_date_groups_by_key():
    entries = [
        SimpleNamespace(id=1, date=date(2024, 12, 14)),
        SimpleNamespace(id=2, date=date(2024, 12, 15)),
        SimpleNamespace(id=3, date=date(2024, 12, 14)),
    ]
    grouped = entries_by_date(entries)
    assert [e.id for e in grouped["2024-12-14"]] == [1, 3]
    assert list(grouped) == ["2024-12-14", "2024-12-15"]


@pytest.mark.parametrize(
    "year, month, delta, expected",
    [(2024, 12, 1, (2025, 1)), (2025, 1, -1, (2024, 12)), (2024, 5, 0, (2024, 5)), (2024, 3, -14, (2023, 1))],
)
def test_shift_month(year, month, delta, expected):
    assert shift_month(year, month, delta) == expected
