"""Emotion tag catalog: defaults, custom tags and usage counts."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from moodiary.core.errors import EntryConflictError, TransientIOError, ValidationError
from moodiary.core.events.event_bus import EventRecord, event_bus
from moodiary.core.profiles.services import ensure_profile
from moodiary.domains.emotions.models import CATEGORY_COLORS, EmotionCategory, EmotionTag
from moodiary.extensions import db

logger = logging.getLogger(__name__)

DEFAULT_EMOTION_TAGS = (
    ("Joy", "#10B981", EmotionCategory.POSITIVE),
    ("Happiness", "#3B82F6", EmotionCategory.POSITIVE),
    ("Gratitude", "#8B5CF6", EmotionCategory.POSITIVE),
    ("Excitement", "#F59E0B", EmotionCategory.POSITIVE),
    ("Sadness", "#6B7280", EmotionCategory.NEGATIVE),
    ("Anger", "#EF4444", EmotionCategory.NEGATIVE),
    ("Anxiety", "#F97316", EmotionCategory.NEGATIVE),
    ("Worry", "#84CC16", EmotionCategory.NEGATIVE),
    ("Calm", "#06B6D4", EmotionCategory.NEUTRAL),
    ("Indifference", "#64748B", EmotionCategory.NEUTRAL),
)


def color_for_category(category) -> str:
    parsed = EmotionCategory.parse(category) or EmotionCategory.NEUTRAL
    return CATEGORY_COLORS[parsed]


def _visible_to(profile_id: str):
    return or_(EmotionTag.profile_id == profile_id, EmotionTag.is_default.is_(True))


def list_tags(profile_id: str) -> List[EmotionTag]:
    """Defaults plus the profile's own tags, defaults first."""
    try:
        return (
            EmotionTag.query.filter(_visible_to(profile_id))
            .order_by(EmotionTag.profile_id.isnot(None), EmotionTag.id)
            .all()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise TransientIOError(str(exc)) from exc


def list_default_tags() -> List[EmotionTag]:
    return EmotionTag.query.filter(EmotionTag.is_default.is_(True)).order_by(EmotionTag.id).all()


def list_custom_tags(profile_id: str) -> List[EmotionTag]:
    return EmotionTag.query.filter_by(profile_id=profile_id).order_by(EmotionTag.id).all()


def get_tag(profile_id: str, tag_id: Optional[int]) -> Optional[EmotionTag]:
    """A tag the profile may use, or None for unknown and foreign ids."""
    if not tag_id:
        return None
    return EmotionTag.query.filter(EmotionTag.id == tag_id, _visible_to(profile_id)).first()


def get_tags(profile_id: str, tag_ids: Iterable[int]) -> List[EmotionTag]:
    ids = {int(t) for t in tag_ids if t}
    if not ids:
        return []
    return EmotionTag.query.filter(EmotionTag.id.in_(ids), _visible_to(profile_id)).all()


def create_custom_tag(
    profile_id: str,
    *,
    name: str,
    category=EmotionCategory.NEUTRAL,
    color: Optional[str] = None,
) -> EmotionTag:
    name_norm = (name or "").strip()
    if not name_norm:
        raise ValidationError(code="invalid_tag_name")
    parsed = EmotionCategory.parse(category) or EmotionCategory.NEUTRAL
    tag = EmotionTag(
        profile_id=profile_id,
        name=name_norm,
        color=color or color_for_category(parsed),
        category=parsed,
        is_default=False,
        usage_count=0,
    )
    try:
        ensure_profile(profile_id)
        db.session.add(tag)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise EntryConflictError(code="duplicate_tag_name")
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to create emotion tag for profile %s", profile_id)
        raise TransientIOError(str(exc)) from exc
    logger.info("Created custom emotion tag %s for profile %s", tag.id, profile_id)
    return tag


def get_or_stage_custom_tag(profile_id: str, *, name: str, category=None, color=None) -> EmotionTag:
    """Find the profile's tag by name or add one to the session without committing.

    Used by the diary store when a form carries tags that only had a temporary
    id; the caller commits together with the entry.
    """
    name_norm = (name or "").strip()
    if not name_norm:
        raise ValidationError(code="invalid_tag_name")
    existing = EmotionTag.query.filter(
        _visible_to(profile_id), func.lower(EmotionTag.name) == name_norm.lower()
    ).first()
    if existing:
        return existing
    parsed = EmotionCategory.parse(category) or EmotionCategory.NEUTRAL
    tag = EmotionTag(
        profile_id=profile_id,
        name=name_norm,
        color=color or color_for_category(parsed),
        category=parsed,
        is_default=False,
        usage_count=0,
    )
    db.session.add(tag)
    db.session.flush()
    return tag


def seed_default_tags() -> int:
    """Insert missing default tags. Returns how many were created."""
    existing = {t.name for t in list_default_tags()}
    created = 0
    for name, color, category in DEFAULT_EMOTION_TAGS:
        if name in existing:
            continue
        db.session.add(
            EmotionTag(
                profile_id=None,
                name=name,
                color=color,
                category=category,
                is_default=True,
                usage_count=0,
            )
        )
        created += 1
    db.session.commit()
    return created


def refresh_usage_counts(tag_ids: Iterable[int]) -> None:
    """Recount live entries per tag. Caller commits."""
    from moodiary.domains.diaries.models import Diary, DiaryTag

    ids = sorted({int(t) for t in tag_ids if t})
    if not ids:
        return
    rows = (
        db.session.query(DiaryTag.emotion_tag_id, func.count(DiaryTag.id))
        .join(Diary, Diary.id == DiaryTag.diary_id)
        .filter(DiaryTag.emotion_tag_id.in_(ids), Diary.is_deleted.is_(False))
        .group_by(DiaryTag.emotion_tag_id)
        .all()
    )
    counts = dict(rows)
    for tag in EmotionTag.query.filter(EmotionTag.id.in_(ids)).all():
        tag.usage_count = int(counts.get(tag.id, 0))


def _on_diary_tags_changed(event: EventRecord) -> None:
    payload = event.payload or {}
    ids = set(payload.get("tag_ids") or []) | set(payload.get("previous_tag_ids") or [])
    if not ids:
        return
    try:
        refresh_usage_counts(ids)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to refresh usage counts for tags %s", sorted(ids))


def register_subscriptions(bus=None) -> None:
    from moodiary.domains.diaries.events import TAG_USAGE_EVENTS

    bus = bus or event_bus
    for event_type in TAG_USAGE_EVENTS:
        bus.subscribe(event_type, _on_diary_tags_changed)
