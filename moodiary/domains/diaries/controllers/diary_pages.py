"""Diary HTML pages: the list with its calendar, and the entry wizard."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import List, Optional

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for
from werkzeug.utils import secure_filename

from moodiary.core.errors import DiaryError, EntryConflictError, TransientIOError
from moodiary.core.profiles import current_profile
from moodiary.core.utils.dates import parse_optional_date
from moodiary.core.utils.decorators import csrf_protected
from moodiary.core.utils.pagination import PageState, clamp_limit
from moodiary.domains.diaries.forms import DiaryFormData
from moodiary.domains.diaries.mappers import form_from_entry
from moodiary.domains.diaries.models import TEXT_FIELDS
from moodiary.domains.diaries.schemas.diary_schemas import (
    CompletionFilter,
    DiaryListParams,
    SortBy,
)
from moodiary.domains.diaries.services import diary_service
from moodiary.domains.diaries.services.calendar_lookup import (
    CalendarLookup,
    entries_by_date,
    shift_month,
)
from moodiary.domains.diaries.services.stepped_form import STEPS, SteppedDiaryForm
from moodiary.domains.emotions.mappers import map_tag
from moodiary.domains.emotions.models import EmotionCategory
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView
from moodiary.domains.emotions.services import emotion_service

logger = logging.getLogger(__name__)

diary_pages_bp = Blueprint("diary_pages", __name__)


def _calendar_month(params: DiaryListParams) -> tuple[int, int]:
    raw = request.args.get("month")
    shown = parse_optional_date(f"{raw}-01") if raw else None
    shown = shown or params.selected_date or params.date_from or date.today()
    return shown.year, shown.month


@diary_pages_bp.get("")
def diary_list():
    profile_id = current_profile().profile_id
    params = DiaryListParams.model_validate(request.args.to_dict())
    limit = clamp_limit(params.limit, default=current_app.config.get("DIARY_PAGE_SIZE", 20))
    year, month = _calendar_month(params)

    error = None
    entries: list = []
    page = PageState(current_page=params.page, limit=limit)
    tags: List[EmotionTagView] = []
    calendar_dates: List[str] = []
    try:
        entries, page, _ = diary_service.list_entry_page(
            profile_id,
            params,
            limit=limit,
            exact=current_app.config.get("DIARY_EXACT_PAGINATION", True),
        )
        calendar_dates = diary_service.list_calendar_dates(profile_id, year)
        tags = [map_tag(t) for t in emotion_service.list_tags(profile_id)]
    except TransientIOError as exc:
        logger.warning("Diary list unavailable for profile %s: %s", profile_id, exc)
        error = exc.code

    lookup = CalendarLookup(calendar_dates)
    prev_year, prev_month = shift_month(year, month, -1)
    next_year, next_month = shift_month(year, month, 1)
    return render_template(
        "diary/list.html",
        params=params,
        entries=entries,
        entries_by_day=entries_by_date(entries),
        page=page,
        tags=tags,
        error=error,
        sort_options=list(SortBy),
        completion_options=list(CompletionFilter),
        calendar_year=year,
        calendar_month=month,
        calendar_weeks=lookup.month_grid(year, month),
        prev_month=f"{prev_year:04d}-{prev_month:02d}",
        next_month=f"{next_year:04d}-{next_month:02d}",
        today=date.today(),
    )


# ==================== Wizard ====================


def _wizard(state: Optional[dict], profile_id: str) -> SteppedDiaryForm:
    def _save(form: DiaryFormData, entry_id: Optional[int]):
        return diary_service.save_form(profile_id, form, entry_id)

    return SteppedDiaryForm.from_dict(state, _save)


def _available_tags(profile_id: str, wizard: SteppedDiaryForm) -> List[EmotionTagView]:
    return [map_tag(t) for t in emotion_service.list_tags(profile_id)] + list(wizard.custom_tags)


def _render_wizard(wizard: SteppedDiaryForm, profile_id: str, *, error: Optional[str] = None, status: int = 200):
    try:
        tags = _available_tags(profile_id, wizard)
    except TransientIOError as exc:
        tags = list(wizard.custom_tags)
        error = error or exc.code
    return (
        render_template(
            "diary/new.html",
            wizard=wizard,
            steps=STEPS,
            tags=tags,
            selected_ids=set(wizard.data.tag_ids()),
            categories=list(EmotionCategory),
            state_json=json.dumps(wizard.to_dict()),
            error=error,
        ),
        status,
    )


@diary_pages_bp.get("/new")
def diary_new():
    profile_id = current_profile().profile_id
    day = parse_optional_date(request.args.get("date")) or date.today()
    wizard = _wizard(None, profile_id)
    wizard.data = DiaryFormData(date=day)
    try:
        existing = diary_service.find_entry_for_date(profile_id, day)
    except DiaryError as exc:
        return _render_wizard(wizard, profile_id, error=exc.code, status=exc.status_code)
    if existing:
        wizard.data = form_from_entry(existing)
        wizard.entry_id = existing.id
    return _render_wizard(wizard, profile_id)


def _apply_posted_fields(wizard: SteppedDiaryForm) -> None:
    wizard.edit_fields({name: request.form[name] for name in TEXT_FIELDS if name in request.form})
    posted_date = parse_optional_date(request.form.get("date"))
    if posted_date and wizard.entry_id is None:
        wizard.data.date = posted_date
    upload = request.files.get("image")
    if upload and upload.filename:
        name = secure_filename(upload.filename)
        if name:
            wizard.attach_image(name)


def _toggle_posted_tag(wizard: SteppedDiaryForm, profile_id: str) -> None:
    try:
        tag_id = int(request.form.get("tag_id", ""))
    except ValueError:
        return
    for tag in _available_tags(profile_id, wizard) + list(wizard.data.emotion_tags):
        if tag.id == tag_id:
            wizard.toggle_tag(tag)
            return


def _finished(entry):
    flash("Diary saved", "success")
    day = entry.date.isoformat()
    return redirect(url_for("diary_pages.diary_list", dateFrom=day, dateTo=day))


@diary_pages_bp.post("/new")
@csrf_protected
def diary_new_post():
    profile_id = current_profile().profile_id
    try:
        wizard = _wizard(json.loads(request.form.get("state") or "{}"), profile_id)
    except ValueError as exc:
        logger.info("Rejected wizard state from profile %s: %s", profile_id, exc)
        abort(400, description="invalid_form_state")
    _apply_posted_fields(wizard)

    action = request.form.get("action", "")
    try:
        if action == "next":
            wizard.next()
        elif action == "previous":
            wizard.previous()
        elif action == "goto":
            wizard.go_to(request.form.get("step"))
        elif action == "save":
            wizard.save_step()
            flash("Step saved", "success")
        elif action == "complete":
            entry = wizard.request_completion()
            if entry is not None:
                return _finished(entry)
        elif action == "confirm":
            return _finished(wizard.confirm_completion())
        elif action == "cancel":
            wizard.cancel_completion()
        elif action == "toggle_tag":
            _toggle_posted_tag(wizard, profile_id)
        elif action == "add_tag":
            wizard.add_custom_tag(
                request.form.get("new_tag_name", ""),
                request.form.get("new_tag_category") or EmotionCategory.NEUTRAL,
            )
        elif action == "remove_image":
            wizard.remove_image()
        else:
            abort(400, description="unknown_action")
    except DiaryError as exc:
        logger.info("Wizard action %s failed for profile %s: %s", action, profile_id, exc.code)
        if isinstance(exc, EntryConflictError) and exc.code == EntryConflictError.code:
            _attach_existing_entry(wizard, profile_id)
        return _render_wizard(wizard, profile_id, error=exc.code, status=exc.status_code)
    return _render_wizard(wizard, profile_id)


def _attach_existing_entry(wizard: SteppedDiaryForm, profile_id: str) -> None:
    """Point an unsaved wizard at the live entry that already holds its date.

    A repeated first save (double submit) lands here; later saves then update
    that entry instead of conflicting again. The typed data is kept.
    """
    if wizard.entry_id is not None:
        return
    try:
        existing = diary_service.find_entry_for_date(profile_id, wizard.data.date)
    except TransientIOError:
        return
    if existing is not None:
        wizard.entry_id = existing.id
