"""In-progress diary data as edited by the stepped form and saved by the store."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Any, Dict, List, Optional

from moodiary.core.utils.dates import to_date
from moodiary.domains.diaries.models import TEXT_FIELDS
from moodiary.domains.diaries.schemas.diary_schemas import (
    DETAIL_MAX_LENGTH,
    NARRATIVE_MAX_LENGTH,
    SUMMARY_MAX_LENGTH,
)
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView

FIELD_MAX_LENGTHS = {
    "short_content": SUMMARY_MAX_LENGTH,
    "situation": DETAIL_MAX_LENGTH,
    "reaction": DETAIL_MAX_LENGTH,
    "physical_sensation": NARRATIVE_MAX_LENGTH,
    "desired_reaction": NARRATIVE_MAX_LENGTH,
    "gratitude_moment": NARRATIVE_MAX_LENGTH,
    "self_kind_words": NARRATIVE_MAX_LENGTH,
}

STRING_FIELDS = tuple(TEXT_FIELDS) + ("image_file", "image_preview", "image_url")


def truncate(field_name: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    limit = FIELD_MAX_LENGTHS.get(field_name)
    return value[:limit] if limit else value


@dataclass
class DiaryFormData:
    """Every field the wizard edits. Text fields are None until typed into.

    ``image_file`` is the attached file reference; ``image_preview`` is what
    the page shows for it. ``image_url`` is an already stored image when an
    existing entry is being edited.
    """

    date: date
    short_content: Optional[str] = None
    situation: Optional[str] = None
    reaction: Optional[str] = None
    physical_sensation: Optional[str] = None
    desired_reaction: Optional[str] = None
    gratitude_moment: Optional[str] = None
    self_kind_words: Optional[str] = None
    image_file: Optional[str] = None
    image_preview: Optional[str] = None
    image_url: Optional[str] = None
    emotion_tags: List[EmotionTagView] = field(default_factory=list)

    def text_values(self) -> Dict[str, Optional[str]]:
        """Text fields as persisted: blank strings become None."""
        values = {}
        for name in TEXT_FIELDS:
            raw = getattr(self, name)
            values[name] = raw if raw is not None and raw.strip() else None
        return values

    def tag_ids(self) -> List[int]:
        return [tag.id for tag in self.emotion_tags]

    def copy(self) -> "DiaryFormData":
        return replace(self, emotion_tags=[tag.model_copy() for tag in self.emotion_tags])

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["date"] = self.date.isoformat()
        data["emotion_tags"] = [tag.model_dump(mode="json") for tag in self.emotion_tags]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiaryFormData":
        """Inverse of ``to_dict``. Values of the wrong type raise TypeError."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (data or {}).items() if k in known}
        for name in STRING_FIELDS:
            value = values.get(name)
            if value is not None and not isinstance(value, str):
                raise TypeError(f"{name} must be a string, got {type(value).__name__}")
        values["date"] = to_date(values.get("date") or date.today())
        values["emotion_tags"] = [
            EmotionTagView.model_validate(tag) for tag in values.get("emotion_tags") or []
        ]
        for name in TEXT_FIELDS:
            values[name] = truncate(name, values.get(name))
        return cls(**values)
