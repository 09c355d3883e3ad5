"""Diary JSON API."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from moodiary.core.profiles import current_profile
from moodiary.core.utils.decorators import csrf_protected
from moodiary.core.utils.pagination import clamp_limit
from moodiary.domains.diaries.forms import DiaryFormData
from moodiary.domains.diaries.mappers import entry_json, form_from_entry
from moodiary.domains.diaries.schemas.diary_schemas import (
    CalendarDatesParams,
    DiaryEntryCreate,
    DiaryEntryUpdate,
    DiaryListParams,
)
from moodiary.domains.diaries.services import diary_service
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView
from moodiary.extensions import limiter

diary_api_bp = Blueprint("diary_api", __name__)


def _tag_refs(ids) -> list:
    # Only ids are known here; the store resolves and validates them.
    return [EmotionTagView(id=tag_id, name="") for tag_id in ids or []]


@diary_api_bp.get("")
@limiter.limit("240/minute")
def list_diaries():
    profile = current_profile()
    params = DiaryListParams.model_validate(request.args.to_dict())
    limit = clamp_limit(params.limit, default=current_app.config.get("DIARY_PAGE_SIZE", 20))
    entries, page, _ = diary_service.list_entry_page(
        profile.profile_id,
        params,
        limit=limit,
        exact=current_app.config.get("DIARY_EXACT_PAGINATION", True),
    )
    return jsonify({"ok": True, "items": [entry_json(e) for e in entries], **page.as_dict()})


@diary_api_bp.get("/calendar")
@limiter.limit("240/minute")
def calendar_dates():
    try:
        params = CalendarDatesParams.model_validate(request.args.to_dict())
    except ValidationError as exc:
        return jsonify({"ok": False, "error": "validation_error", "details": exc.errors()}), 400
    dates = diary_service.list_calendar_dates(current_profile().profile_id, params.year)
    return jsonify({"ok": True, "dates": dates})


@diary_api_bp.get("/<int:entry_id>")
def get_diary(entry_id: int):
    entry = diary_service.get_entry(current_profile().profile_id, entry_id)
    return jsonify({"ok": True, "entry": entry_json(entry)})


@diary_api_bp.post("")
@limiter.limit("60/minute")
@csrf_protected
def create_diary():
    payload = request.get_json(silent=True) or {}
    try:
        data = DiaryEntryCreate.model_validate(payload)
    except ValidationError as exc:
        return jsonify({"ok": False, "error": "validation_error", "details": exc.errors()}), 400
    values = data.model_dump(exclude={"emotion_tag_ids"})
    form = DiaryFormData(**values, emotion_tags=_tag_refs(data.emotion_tag_ids))
    entry = diary_service.create_entry(current_profile().profile_id, form)
    return jsonify({"ok": True, "entry": entry_json(entry)}), 201


@diary_api_bp.patch("/<int:entry_id>")
@limiter.limit("120/minute")
@csrf_protected
def update_diary(entry_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        data = DiaryEntryUpdate.model_validate(payload)
    except ValidationError as exc:
        return jsonify({"ok": False, "error": "validation_error", "details": exc.errors()}), 400
    profile_id = current_profile().profile_id
    form = form_from_entry(diary_service.get_entry(profile_id, entry_id))
    # Only keys present in the payload change; an explicit null clears a field.
    for name, value in data.model_dump(exclude_unset=True, exclude={"emotion_tag_ids"}).items():
        setattr(form, name, value)
    if data.emotion_tag_ids is not None:
        form.emotion_tags = _tag_refs(data.emotion_tag_ids)
    entry = diary_service.update_entry(profile_id, entry_id, form)
    return jsonify({"ok": True, "entry": entry_json(entry)})


@diary_api_bp.delete("/<int:entry_id>")
@limiter.limit("60/minute")
@csrf_protected
def delete_diary(entry_id: int):
    diary_service.delete_entry(current_profile().profile_id, entry_id)
    return jsonify({"ok": True})
