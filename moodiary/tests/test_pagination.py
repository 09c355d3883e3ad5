"""Pagination state and list parameter tests."""

from __future__ import annotations

from datetime import date

import pytest

pytestmark = pytest.mark.unit

from moodiary.core.utils.pagination import PageState, clamp_limit, clamp_page, fetch_page
from moodiary.domains.diaries.schemas.diary_schemas import CompletionFilter, DiaryListParams, SortBy


def _source(total):
    rows = list(range(total))
    calls = []

    def fetch(limit, offset):
        calls.append((limit, offset))
        return rows[offset : offset + limit]

    return fetch, calls


def test_previous_on_first_page_is_noop():
    state = PageState(current_page=1, limit=10, has_next_page=True)
    assert state.previous() is state
    assert state.offset == 0


def test_next_requires_has_next_page():
    state = PageState(current_page=2, limit=10, has_next_page=False)
    assert state.next() is state
    moved = PageState(current_page=2, limit=10, has_next_page=True).next()
    assert moved.current_page == 3
    assert moved.offset == 20


def test_previous_goes_back_one_page():
    state = PageState(current_page=3, limit=5).previous()
    assert state.current_page == 2
    assert state.can_go_next is True


def test_clamping_helpers():
    assert clamp_page(0) == 1
    assert clamp_page(-4) == 1
    assert clamp_page("x") == 1
    assert clamp_limit(None, default=7) == 7
    assert clamp_limit(1000) == 100
    assert clamp_limit("abc", default=5) == 5


def test_exact_fetch_page_on_exact_multiple():
    fetch, calls = _source(10)
    rows, state = fetch_page(fetch, 2, 5, exact=True)
    assert rows == [5, 6, 7, 8, 9]
    assert state.has_next_page is False
    assert calls == [(6, 5)]


def test_heuristic_fetch_page_overestimates_on_exact_multiple():
    fetch, _ = _source(10)
    rows, state = fetch_page(fetch, 2, 5, exact=False)
    assert rows == [5, 6, 7, 8, 9]
    assert state.has_next_page is True


def test_exact_fetch_page_with_more_rows():
    fetch, _ = _source(12)
    rows, state = fetch_page(fetch, 1, 5)
    assert rows == [0, 1, 2, 3, 4]
    assert state.as_dict() == {"page": 1, "limit": 5, "has_next_page": True, "has_previous_page": False}


# ==================== List parameters ====================


def test_list_params_parse_aliases_leniently():
    params = DiaryListParams.model_validate(
        {
            "search": "  ",
            "sortBy": "completion-desc",
            "emotionTagId": "abc",
            "completion": "weird",
            "dateFrom": "2024-12-14",
            "dateTo": "not a date",
            "page": "-3",
        }
    )
    assert params.search is None
    assert params.sort_by is SortBy.COMPLETION_DESC
    assert params.emotion_tag_id is None
    assert params.completion is CompletionFilter.ALL
    assert params.date_from == date(2024, 12, 14)
    assert params.date_to is None
    assert params.page == 1
    assert params.selected_date is None


def test_selected_date_when_range_is_one_day():
    params = DiaryListParams.model_validate({"dateFrom": "2024-12-14", "dateTo": "2024-12-14"})
    assert params.selected_date == date(2024, 12, 14)


def test_changing_a_filter_resets_page():
    params = DiaryListParams.model_validate({"search": "walk", "page": "4"})
    assert params.to_query(page=5)["page"] == 5
    changed = params.to_query(sortBy=SortBy.DATE_ASC)
    assert changed["page"] == 1
    assert changed["sortBy"] == "date-asc"
    assert changed["search"] == "walk"
    assert "completion" not in changed
