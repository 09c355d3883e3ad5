"""Diary entry store: listing, calendar dates and writes with event emission."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from flask import current_app, has_app_context
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.utils import secure_filename

from moodiary.core.errors import (
    DiaryError,
    EntryConflictError,
    NotFoundError,
    TransientIOError,
)
from moodiary.core.events.event_bus import EventRecord, event_bus
from moodiary.core.profiles.services import ensure_profile
from moodiary.core.utils.dates import year_bounds
from moodiary.core.utils.pagination import PageState, fetch_page
from moodiary.domains.diaries.events import (
    DIARY_ENTRY_CREATED,
    DIARY_ENTRY_DELETED,
    DIARY_ENTRY_UPDATED,
)
from moodiary.domains.diaries.forms import DiaryFormData
from moodiary.domains.diaries.mappers import map_entry
from moodiary.domains.emotions.mappers import map_tag
from moodiary.domains.diaries.models import TEXT_FIELDS, Diary, DiaryTag
from moodiary.domains.diaries.schemas.diary_schemas import DiaryEntryView, DiaryListParams, SortBy
from moodiary.domains.diaries.services import filters as diary_filters
from moodiary.domains.diaries.services.filters import count_completed_steps
from moodiary.domains.emotions.models import EmotionTag
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView
from moodiary.domains.emotions.services import emotion_service
from moodiary.extensions import db

logger = logging.getLogger(__name__)

RECREATE_REVIVE = "revive"
RECREATE_REJECT = "reject"

# Predicates list_entries evaluates in SQL.
PUSHED_DOWN = frozenset({"search", "emotion", "date"})


# ==================== Reads ====================


def list_entries(
    profile_id: str,
    *,
    search_query: Optional[str] = None,
    sort_by=SortBy.DATE_DESC,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    emotion_tag_id: Optional[int] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[DiaryEntryView]:
    sort_by = SortBy.parse(sort_by)
    query = Diary.query.filter(Diary.profile_id == profile_id, Diary.is_deleted.is_(False))
    if emotion_tag_id:
        query = query.join(DiaryTag, DiaryTag.diary_id == Diary.id).filter(
            DiaryTag.emotion_tag_id == emotion_tag_id
        )
    if search_query and search_query.strip():
        query = query.filter(
            or_(
                *(
                    getattr(Diary, name).icontains(search_query, autoescape=True)
                    for name in diary_filters.SEARCHABLE_FIELDS
                )
            )
        )
    if date_from:
        query = query.filter(Diary.date >= date_from)
    if date_to:
        query = query.filter(Diary.date <= date_to)

    # Completion orders are applied in memory over the date-ordered rows.
    if sort_by is SortBy.DATE_ASC:
        query = query.order_by(Diary.date.asc(), Diary.id.asc())
    else:
        query = query.order_by(Diary.date.desc(), Diary.id.asc())

    try:
        rows = query.offset(max(offset, 0)).limit(max(limit, 0)).all()
        tags_by_diary = _tags_for(row.id for row in rows)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to list diary entries for profile %s", profile_id)
        raise TransientIOError(str(exc)) from exc

    entries = [map_entry(row, tags_by_diary.get(row.id, [])) for row in rows]
    return diary_filters.apply_sort(entries, sort_by)


def build_filters(profile_id: str, params: DiaryListParams) -> diary_filters.DiaryFilters:
    """Turn list parameters into engine filters.

    An emotion id that does not resolve to a tag visible to the profile is
    dropped, so the list degrades to "no emotion filter".
    """
    tag = None
    if params.emotion_tag_id:
        try:
            found = emotion_service.get_tag(profile_id, params.emotion_tag_id)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise TransientIOError(str(exc)) from exc
        tag = map_tag(found) if found else None
    return diary_filters.DiaryFilters(
        search_query=params.search,
        sort_by=params.sort_by,
        emotion_tag=tag,
        completion=params.completion,
        selected_date=params.selected_date,
        pushed_down=PUSHED_DOWN,
    )


def list_entry_page(
    profile_id: str,
    params: DiaryListParams,
    *,
    limit: int,
    exact: bool = True,
) -> Tuple[List[DiaryEntryView], PageState, diary_filters.DiaryFilters]:
    """One page of entries with search/emotion/date in SQL and the rest in memory."""
    filters = build_filters(profile_id, params)
    emotion_tag_id = filters.emotion_tag.id if filters.emotion_tag else None

    def _fetch(fetch_limit: int, offset: int) -> List[DiaryEntryView]:
        return list_entries(
            profile_id,
            search_query=filters.search_query,
            sort_by=filters.sort_by,
            date_from=params.date_from,
            date_to=params.date_to,
            emotion_tag_id=emotion_tag_id,
            limit=fetch_limit,
            offset=offset,
        )

    rows, page = fetch_page(_fetch, params.page, limit, exact=exact)
    return diary_filters.refine(rows, filters), page, filters


def list_calendar_dates(profile_id: str, year: Optional[int] = None) -> List[str]:
    """Sorted unique ``YYYY-MM-DD`` strings of live entries, optionally for one year."""
    query = db.session.query(Diary.date).filter(
        Diary.profile_id == profile_id, Diary.is_deleted.is_(False)
    )
    if year:
        start, end = year_bounds(year)
        query = query.filter(Diary.date >= start, Diary.date <= end)
    try:
        rows = query.distinct().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to load calendar dates for profile %s", profile_id)
        raise TransientIOError(str(exc)) from exc
    return sorted({row[0].isoformat() for row in rows})


def get_entry(profile_id: str, entry_id: int) -> DiaryEntryView:
    diary = _load_live(profile_id, entry_id)
    try:
        tags = _tags_for([diary.id]).get(diary.id, [])
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise TransientIOError(str(exc)) from exc
    return map_entry(diary, tags)


def find_entry_for_date(profile_id: str, day: date) -> Optional[DiaryEntryView]:
    try:
        diary = Diary.query.filter_by(profile_id=profile_id, date=day, is_deleted=False).first()
        tags = _tags_for([diary.id]).get(diary.id, []) if diary else []
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to look up the diary of %s for profile %s", day, profile_id)
        raise TransientIOError(str(exc)) from exc
    if not diary:
        return None
    return map_entry(diary, tags)


# ==================== Writes ====================


def create_entry(
    profile_id: str,
    form: DiaryFormData,
    *,
    recreate_policy: Optional[str] = None,
) -> DiaryEntryView:
    policy = _recreate_policy(recreate_policy)
    try:
        diary = _slot_for(profile_id, form.date, policy)
        _apply_form(diary, form)
        ensure_profile(profile_id)
        if diary.id is None:
            db.session.add(diary)
        tags = _replace_tags(profile_id, diary, form.emotion_tags)
        _commit()
    except DiaryError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to create diary for profile %s", profile_id)
        raise TransientIOError(str(exc)) from exc

    # Subscribers update tag usage counts, so map only after publishing.
    _publish(
        DIARY_ENTRY_CREATED,
        profile_id,
        {
            "entry_id": diary.id,
            "profile_id": profile_id,
            "date": diary.date.isoformat(),
            "tag_ids": [t.id for t in tags],
            "completed_steps": count_completed_steps(diary),
        },
    )
    entry = map_entry(diary, tags)
    logger.info("Created diary %s for profile %s on %s", entry.id, profile_id, entry.date)
    return entry


def update_entry(profile_id: str, entry_id: int, form: DiaryFormData) -> DiaryEntryView:
    """Replace an entry's text, image and tags. The date never changes."""
    diary = _load_live(profile_id, entry_id)
    try:
        previous_tag_ids = [link.emotion_tag_id for link in diary.tag_links]
        _apply_form(diary, form)
        tags = _replace_tags(profile_id, diary, form.emotion_tags)
        _commit()
    except DiaryError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to update diary %s", entry_id)
        raise TransientIOError(str(exc)) from exc

    _publish(
        DIARY_ENTRY_UPDATED,
        profile_id,
        {
            "entry_id": diary.id,
            "profile_id": profile_id,
            "tag_ids": [t.id for t in tags],
            "previous_tag_ids": previous_tag_ids,
            "completed_steps": count_completed_steps(diary),
        },
    )
    return map_entry(diary, tags)


def save_form(profile_id: str, form: DiaryFormData, entry_id: Optional[int] = None) -> DiaryEntryView:
    """Create on first save, update afterwards."""
    if entry_id:
        return update_entry(profile_id, entry_id, form)
    return create_entry(profile_id, form)


def delete_entry(profile_id: str, entry_id: int) -> None:
    """Soft delete."""
    diary = _load_live(profile_id, entry_id)
    try:
        tag_ids = [link.emotion_tag_id for link in diary.tag_links]
        diary.is_deleted = True
        _commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to delete diary %s", entry_id)
        raise TransientIOError(str(exc)) from exc
    _publish(
        DIARY_ENTRY_DELETED,
        profile_id,
        {"entry_id": entry_id, "profile_id": profile_id, "tag_ids": tag_ids},
    )
    logger.info("Soft-deleted diary %s for profile %s", entry_id, profile_id)


# ==================== Helpers ====================


def _tags_for(diary_ids: Iterable[int]) -> Dict[int, List[EmotionTag]]:
    """All tags of the given entries in a single query."""
    ids = list(diary_ids)
    if not ids:
        return {}
    rows = (
        db.session.query(DiaryTag.diary_id, EmotionTag)
        .join(EmotionTag, EmotionTag.id == DiaryTag.emotion_tag_id)
        .filter(DiaryTag.diary_id.in_(ids))
        .order_by(DiaryTag.id)
        .all()
    )
    grouped: Dict[int, List[EmotionTag]] = {}
    for diary_id, tag in rows:
        grouped.setdefault(diary_id, []).append(tag)
    return grouped


def _load_live(profile_id: str, entry_id: int) -> Diary:
    try:
        diary = Diary.query.filter_by(id=entry_id, profile_id=profile_id, is_deleted=False).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise TransientIOError(str(exc)) from exc
    if diary is None:
        raise NotFoundError(f"Diary {entry_id} not found")
    return diary


def _recreate_policy(explicit: Optional[str]) -> str:
    policy = explicit
    if policy is None and has_app_context():
        policy = current_app.config.get("DIARY_RECREATE_POLICY")
    policy = (policy or RECREATE_REVIVE).lower()
    if policy not in (RECREATE_REVIVE, RECREATE_REJECT):
        raise ValueError(f"Unknown recreate policy: {policy}")
    return policy


def _slot_for(profile_id: str, day: date, policy: str) -> Diary:
    """The row a new entry on ``day`` will occupy: fresh, or a revived deleted one."""
    existing = Diary.query.filter_by(profile_id=profile_id, date=day).first()
    if existing is None:
        return Diary(profile_id=profile_id, date=day, is_deleted=False)
    if not existing.is_deleted:
        raise EntryConflictError(f"An entry already exists for {day.isoformat()}")
    if policy == RECREATE_REJECT:
        raise EntryConflictError(
            f"A deleted entry still occupies {day.isoformat()}",
            code="deleted_entry_on_date",
        )
    _reset(existing)
    logger.info("Reviving deleted diary %s for profile %s", existing.id, profile_id)
    return existing


def _reset(diary: Diary) -> None:
    for name in TEXT_FIELDS:
        setattr(diary, name, None)
    diary.image_url = None
    diary.is_deleted = False
    diary.created_at = datetime.utcnow()
    diary.tag_links.clear()
    # Old links must be gone before the same pairs are inserted again.
    db.session.flush()


def _image_url(form: DiaryFormData) -> Optional[str]:
    """File attach is a stub: the stored URL is derived from the file name."""
    if form.image_file:
        prefix = "/uploads/"
        if has_app_context():
            prefix = current_app.config.get("UPLOAD_URL_PREFIX", prefix)
        name = secure_filename(form.image_file)
        return f"{prefix}{name}" if name else None
    return form.image_url


def _apply_form(diary: Diary, form: DiaryFormData) -> None:
    for name, value in form.text_values().items():
        setattr(diary, name, value)
    diary.image_url = _image_url(form)


def _replace_tags(profile_id: str, diary: Diary, tags: Iterable[EmotionTagView]) -> List[EmotionTag]:
    """Sync the entry's tag links with ``tags``.

    Tags with a non-positive id were created in the form and are stored as
    custom tags of the profile first.
    """
    wanted: List[EmotionTag] = []
    seen = set()
    requested = list(tags)
    known_ids = [t.id for t in requested if t.id > 0]
    visible = {t.id: t for t in emotion_service.get_tags(profile_id, known_ids)}
    for tag in requested:
        if tag.id > 0:
            resolved = visible.get(tag.id)
            if resolved is None:
                raise NotFoundError(f"Emotion tag {tag.id} not found", code="tag_not_found")
        else:
            resolved = emotion_service.get_or_stage_custom_tag(
                profile_id, name=tag.name, category=tag.category, color=tag.color
            )
        if resolved.id in seen:
            continue
        seen.add(resolved.id)
        wanted.append(resolved)

    for link in list(diary.tag_links):
        if link.emotion_tag_id not in seen:
            diary.tag_links.remove(link)
    linked = {link.emotion_tag_id for link in diary.tag_links}
    for tag in wanted:
        if tag.id not in linked:
            diary.tag_links.append(DiaryTag(emotion_tag_id=tag.id))
    return wanted


def _commit() -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise EntryConflictError("An entry already exists for this date") from exc


def _publish(event_type: str, profile_id: str, payload: dict) -> None:
    event_bus.publish(EventRecord(event_type=event_type, payload=payload, profile_id=profile_id))
