"""Which calendar days have an entry."""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from moodiary.core.utils.dates import DateLike, to_date, to_date_key


class CalendarLookup:
    """Exact-match membership over ``YYYY-MM-DD`` keys."""

    def __init__(self, dates: Iterable[DateLike] = ()) -> None:
        self._keys = {to_date_key(value) for value in dates}

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, value: object) -> bool:
        try:
            return self.has_entry(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def has_entry(self, value: DateLike) -> bool:
        return to_date_key(value) in self._keys

    def dates(self) -> List[str]:
        return sorted(self._keys)

    def month_grid(self, year: int, month: int) -> List[List[Tuple[Optional[date], bool]]]:
        """Weeks of (day, has_entry) cells, Monday first; padding cells are (None, False)."""
        weeks = []
        for week in calendar.Calendar(firstweekday=0).monthdatescalendar(year, month):
            row = []
            for day in week:
                if day.month != month:
                    row.append((None, False))
                else:
                    row.append((day, self.has_entry(day)))
            weeks.append(row)
        return weeks


def entries_by_date(entries: Iterable) -> Dict[str, list]:
    grouped: Dict[str, list] = defaultdict(list)
    for entry in entries:
        grouped[to_date_key(entry.date)].append(entry)
    return dict(grouped)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
