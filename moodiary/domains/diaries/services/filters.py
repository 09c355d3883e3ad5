"""Filter and sort stages for diary entry collections.

Every stage is a pure function over a sequence of entries and returns a new
list. The store runs the same stages after its SQL query, and the list page
runs them again over the fetched page, so the two never disagree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Protocol, Sequence, TypeVar

from moodiary.core.utils.dates import DateLike, to_date
from moodiary.domains.diaries.models import TEXT_FIELDS
from moodiary.domains.diaries.schemas.diary_schemas import CompletionFilter, SortBy

SEARCHABLE_FIELDS = ("short_content", "situation", "reaction")


class _Tagged(Protocol):
    id: int


class FilterableEntry(Protocol):
    date: date
    short_content: Optional[str]
    situation: Optional[str]
    reaction: Optional[str]
    completed_steps: int
    total_steps: int

    @property
    def emotion_tags(self) -> Sequence[_Tagged]: ...


E = TypeVar("E", bound=FilterableEntry)


@dataclass(frozen=True)
class DiaryFilters:
    """All list criteria in one value.

    ``pushed_down`` names the predicates the store already applied in SQL;
    ``refine`` skips them so the page does not filter twice.
    """

    search_query: Optional[str] = None
    sort_by: SortBy = SortBy.DATE_DESC
    emotion_tag: Optional[_Tagged] = None
    completion: CompletionFilter = CompletionFilter.ALL
    selected_date: Optional[date] = None
    pushed_down: frozenset = field(default_factory=frozenset)


def count_completed_steps(source) -> int:
    """Number of the seven text fields holding something other than whitespace."""
    total = 0
    for name in TEXT_FIELDS:
        value = source.get(name) if isinstance(source, dict) else getattr(source, name, None)
        if value is not None and str(value).strip():
            total += 1
    return total


def matches_search(entry: FilterableEntry, query: str) -> bool:
    needle = query.lower()
    for name in SEARCHABLE_FIELDS:
        value = getattr(entry, name, None)
        if value and needle in value.lower():
            return True
    return False


def apply_search(entries: Iterable[E], query: Optional[str]) -> List[E]:
    if query is None or not query.strip():
        return list(entries)
    return [entry for entry in entries if matches_search(entry, query)]


def apply_emotion_filter(entries: Iterable[E], tag: Optional[_Tagged]) -> List[E]:
    if tag is None:
        return list(entries)
    return [e for e in entries if any(t.id == tag.id for t in e.emotion_tags)]


def apply_completion_filter(entries: Iterable[E], mode) -> List[E]:
    mode = CompletionFilter.parse(mode)
    if mode is CompletionFilter.COMPLETE:
        return [e for e in entries if e.completed_steps == e.total_steps]
    if mode is CompletionFilter.INCOMPLETE:
        return [e for e in entries if e.completed_steps < e.total_steps]
    return list(entries)


def apply_date_filter(entries: Iterable[E], day: Optional[DateLike]) -> List[E]:
    if day is None:
        return list(entries)
    target = to_date(day)
    return [e for e in entries if to_date(e.date) == target]


def _completion_ratio(entry: FilterableEntry) -> float:
    return entry.completed_steps / entry.total_steps if entry.total_steps else 0.0


def apply_sort(entries: Iterable[E], sort_by) -> List[E]:
    """Stable sort; entries with equal keys keep their input order."""
    sort_by = SortBy.parse(sort_by)
    items = list(entries)
    if sort_by is SortBy.DATE_ASC:
        return sorted(items, key=lambda e: to_date(e.date))
    if sort_by is SortBy.COMPLETION_ASC:
        return sorted(items, key=_completion_ratio)
    if sort_by is SortBy.COMPLETION_DESC:
        return sorted(items, key=_completion_ratio, reverse=True)
    return sorted(items, key=lambda e: to_date(e.date), reverse=True)


def apply_all(entries: Iterable[E], filters: DiaryFilters) -> List[E]:
    filtered = apply_search(entries, filters.search_query)
    filtered = apply_emotion_filter(filtered, filters.emotion_tag)
    filtered = apply_completion_filter(filtered, filters.completion)
    filtered = apply_date_filter(filtered, filters.selected_date)
    # Sorting last
    return apply_sort(filtered, filters.sort_by)


def refine(entries: Iterable[E], filters: DiaryFilters) -> List[E]:
    """``apply_all`` minus the stages listed in ``filters.pushed_down``."""
    skip = filters.pushed_down
    filtered = list(entries)
    if "search" not in skip:
        filtered = apply_search(filtered, filters.search_query)
    if "emotion" not in skip:
        filtered = apply_emotion_filter(filtered, filters.emotion_tag)
    if "completion" not in skip:
        filtered = apply_completion_filter(filtered, filters.completion)
    if "date" not in skip:
        filtered = apply_date_filter(filtered, filters.selected_date)
    return apply_sort(filtered, filters.sort_by)
