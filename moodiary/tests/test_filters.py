"""Filter/sort engine tests over in-memory entries."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

pytestmark = pytest.mark.unit

from moodiary.domains.diaries.models import TEXT_FIELDS
from moodiary.domains.diaries.schemas.diary_schemas import CompletionFilter, DiaryEntryView, SortBy
from moodiary.domains.diaries.services import filters
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView

JOY = EmotionTagView(id=1, name="Joy", color="#10B981")
ANGER = EmotionTagView(id=6, name="Anger", color="#EF4444")


def _entry(entry_id, day, filled=0, tags=(), **fields):
    values = {name: f"{name} {entry_id}" for name in TEXT_FIELDS[:filled]}
    values.update(fields)
    return DiaryEntryView(
        id=entry_id,
        profile_id="p",
        date=day,
        emotion_tags=list(tags),
        completed_steps=filters.count_completed_steps(values),
        **values,
    )


@pytest.fixture
def entries():
    return [
        _entry(1, date(2024, 12, 15), filled=7, tags=[JOY], short_content="A calm Morning walk"),
        _entry(2, date(2024, 12, 14), filled=3, tags=[ANGER], situation="Traffic jam MORNING"),
        _entry(3, date(2024, 12, 14), filled=1, reaction="I laughed"),
        _entry(4, date(2024, 12, 10), filled=0),
        _entry(5, date(2024, 11, 30), filled=7, tags=[JOY, ANGER]),
    ]


# ==================== Completion counting ====================


def test_count_completed_steps_ignores_whitespace():
    source = {"short_content": "  ", "situation": "x", "reaction": None, "gratitude_moment": "\n ok"}
    assert filters.count_completed_steps(source) == 2


def test_count_completed_steps_reads_attributes():
    entry = _entry(9, date(2024, 1, 1), filled=4)
    assert filters.count_completed_steps(entry) == 4


# ==================== Search ====================


@pytest.mark.parametrize("query", [None, "", "   ", "\t"])
def test_blank_search_returns_everything(entries, query):
    assert filters.apply_search(entries, query) == entries


@pytest.mark.parametrize("query", ["morning", "MORNING", "laugh", "situation", "zzz"])
def test_search_result_is_subset_and_every_hit_matches(entries, query):
    result = filters.apply_search(entries, query)
    assert all(entry in entries for entry in result)
    for entry in result:
        haystacks = [getattr(entry, name) or "" for name in filters.SEARCHABLE_FIELDS]
        assert any(query.lower() in text.lower() for text in haystacks)


def test_search_is_case_insensitive_across_fields(entries):
    result = filters.apply_search(entries, "morning")
    assert [e.id for e in result] == [1, 2]


def test_search_ignores_non_searchable_fields():
    entry = _entry(1, date(2024, 1, 1), gratitude_moment="sunshine")
    assert filters.apply_search([entry], "sunshine") == []


def test_search_treats_wildcards_literally():
    plain = _entry(1, date(2024, 1, 1), short_content="100 percent")
    literal = _entry(2, date(2024, 1, 2), short_content="100% done")
    assert filters.apply_search([plain, literal], "100%") == [literal]


# ==================== Emotion / completion / date ====================


def test_emotion_filter_none_is_noop(entries):
    assert filters.apply_emotion_filter(entries, None) == entries


def test_emotion_filter_matches_by_id(entries):
    result = filters.apply_emotion_filter(entries, EmotionTagView(id=6, name="renamed"))
    assert [e.id for e in result] == [2, 5]


@pytest.mark.parametrize("mode", list(CompletionFilter))
def test_completion_modes_are_subsets(entries, mode):
    result = filters.apply_completion_filter(entries, mode)
    assert all(entry in entries for entry in result)


def test_completion_filter_partitions(entries):
    complete = filters.apply_completion_filter(entries, "complete")
    incomplete = filters.apply_completion_filter(entries, CompletionFilter.INCOMPLETE)
    assert {e.id for e in complete} | {e.id for e in incomplete} == {e.id for e in entries}
    assert not {e.id for e in complete} & {e.id for e in incomplete}
    assert all(e.completed_steps == e.total_steps for e in complete)
    assert filters.apply_completion_filter(entries, "all") == entries


def test_unknown_completion_mode_means_all(entries):
    assert filters.apply_completion_filter(entries, "bogus") == entries


def test_date_filter_exact_day(entries):
    assert [e.id for e in filters.apply_date_filter(entries, date(2024, 12, 14))] == [2, 3]
    assert [e.id for e in filters.apply_date_filter(entries, "2024-12-10")] == [4]
    assert filters.apply_date_filter(entries, None) == entries


def test_date_filter_normalizes_aware_datetimes_to_utc(entries):
    # 2024-12-15 01:30 at UTC+05:00 is still 2024-12-14 in UTC.
    aware = datetime(2024, 12, 15, 1, 30, tzinfo=timezone(timedelta(hours=5)))
    assert [e.id for e in filters.apply_date_filter(entries, aware)] == [2, 3]


# ==================== Sorting ====================


def test_sort_date_desc_is_default_and_stable(entries):
    result = filters.apply_sort(entries, "not-a-sort")
    assert [e.id for e in result] == [1, 2, 3, 4, 5]
    assert filters.apply_sort(entries, SortBy.DATE_DESC) == result


def test_sort_date_asc_keeps_ties_in_input_order(entries):
    result = filters.apply_sort(entries, "date-asc")
    assert [e.id for e in result] == [5, 4, 2, 3, 1]
    swapped = [entries[2], entries[1]]
    assert [e.id for e in filters.apply_sort(swapped, "date-asc")] == [3, 2]


def test_sort_by_completion(entries):
    asc = filters.apply_sort(entries, SortBy.COMPLETION_ASC)
    assert [e.id for e in asc] == [4, 3, 2, 1, 5]
    desc = filters.apply_sort(entries, SortBy.COMPLETION_DESC)
    assert [e.id for e in desc] == [1, 5, 2, 3, 4]


def test_scenario_complete_and_incomplete_pair():
    a = _entry(1, date(2024, 12, 15), filled=7)
    b = _entry(2, date(2024, 12, 14), filled=3)
    assert filters.apply_completion_filter([a, b], "complete") == [a]
    assert filters.apply_sort([a, b], "completion-asc") == [b, a]


# ==================== Composition ====================


def test_apply_all_is_stable_on_its_own_output(entries):
    criteria = filters.DiaryFilters(
        search_query="morning",
        sort_by=SortBy.COMPLETION_ASC,
        completion=CompletionFilter.ALL,
    )
    once = filters.apply_all(entries, criteria)
    assert filters.apply_all(once, criteria) == once


def test_apply_all_combines_every_stage(entries):
    criteria = filters.DiaryFilters(
        emotion_tag=JOY,
        completion=CompletionFilter.COMPLETE,
        sort_by=SortBy.DATE_ASC,
    )
    assert [e.id for e in filters.apply_all(entries, criteria)] == [5, 1]


def test_refine_skips_pushed_down_stages(entries):
    criteria = filters.DiaryFilters(
        search_query="nothing matches this",
        emotion_tag=ANGER,
        completion=CompletionFilter.INCOMPLETE,
        pushed_down=frozenset({"search", "emotion"}),
    )
    assert [e.id for e in filters.refine(entries, criteria)] == [2, 3, 4]
