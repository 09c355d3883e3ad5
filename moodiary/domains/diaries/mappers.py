"""Diary mappers for DTO responses."""

from __future__ import annotations

from typing import Iterable, Optional

from moodiary.domains.diaries.forms import DiaryFormData
from moodiary.domains.diaries.models import TOTAL_STEPS, Diary
from moodiary.domains.diaries.schemas.diary_schemas import DiaryEntryView
from moodiary.domains.diaries.services.filters import count_completed_steps
from moodiary.domains.emotions.mappers import map_tag
from moodiary.domains.emotions.models import EmotionTag


def map_entry(diary: Diary, tags: Optional[Iterable[EmotionTag]] = None) -> DiaryEntryView:
    return DiaryEntryView(
        id=diary.id,
        profile_id=diary.profile_id,
        date=diary.date,
        short_content=diary.short_content,
        situation=diary.situation,
        reaction=diary.reaction,
        physical_sensation=diary.physical_sensation,
        desired_reaction=diary.desired_reaction,
        gratitude_moment=diary.gratitude_moment,
        self_kind_words=diary.self_kind_words,
        image_url=diary.image_url,
        is_deleted=diary.is_deleted,
        created_at=diary.created_at,
        updated_at=diary.updated_at,
        emotion_tags=[map_tag(t) for t in tags or []],
        completed_steps=count_completed_steps(diary),
        total_steps=TOTAL_STEPS,
    )


def entry_json(entry: DiaryEntryView) -> dict:
    data = entry.model_dump(mode="json")
    data["completion_ratio"] = round(entry.completion_ratio, 4)
    return data


def form_from_entry(entry: DiaryEntryView) -> DiaryFormData:
    return DiaryFormData(
        date=entry.date,
        short_content=entry.short_content,
        situation=entry.situation,
        reaction=entry.reaction,
        physical_sensation=entry.physical_sensation,
        desired_reaction=entry.desired_reaction,
        gratitude_moment=entry.gratitude_moment,
        self_kind_words=entry.self_kind_words,
        image_url=entry.image_url,
        emotion_tags=list(entry.emotion_tags),
    )
