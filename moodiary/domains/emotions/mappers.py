"""Emotion tag mappers for DTO responses."""

from __future__ import annotations

from moodiary.domains.emotions.models import EmotionTag
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView


def map_tag(tag: EmotionTag) -> EmotionTagView:
    return EmotionTagView(
        id=tag.id,
        name=tag.name,
        color=tag.color,
        category=tag.category,
        is_default=tag.is_default,
        usage_count=tag.usage_count,
    )
