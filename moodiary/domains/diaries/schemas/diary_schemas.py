"""Diary request/response schemas."""

from __future__ import annotations

import datetime as dt
import enum
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from moodiary.core.utils.dates import parse_optional_date
from moodiary.domains.diaries.models import TOTAL_STEPS
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView

SUMMARY_MAX_LENGTH = 100
NARRATIVE_MAX_LENGTH = 500
DETAIL_MAX_LENGTH = 1000


class SortBy(str, enum.Enum):
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"
    COMPLETION_ASC = "completion-asc"
    COMPLETION_DESC = "completion-desc"

    @classmethod
    def parse(cls, value) -> "SortBy":
        """Unknown or missing values fall back to newest first."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.DATE_DESC

    @property
    def is_completion(self) -> bool:
        return self in (SortBy.COMPLETION_ASC, SortBy.COMPLETION_DESC)


class CompletionFilter(str, enum.Enum):
    ALL = "all"
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"

    @classmethod
    def parse(cls, value) -> "CompletionFilter":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.ALL


class DiaryEntryView(BaseModel):
    """A live entry enriched with its tags and completion counters."""

    id: int
    profile_id: str
    date: dt.date
    short_content: Optional[str] = None
    situation: Optional[str] = None
    reaction: Optional[str] = None
    physical_sensation: Optional[str] = None
    desired_reaction: Optional[str] = None
    gratitude_moment: Optional[str] = None
    self_kind_words: Optional[str] = None
    image_url: Optional[str] = None
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    emotion_tags: List[EmotionTagView] = Field(default_factory=list)
    completed_steps: int = 0
    total_steps: int = TOTAL_STEPS

    @property
    def completion_ratio(self) -> float:
        return self.completed_steps / self.total_steps if self.total_steps else 0.0

    @property
    def is_complete(self) -> bool:
        return self.completed_steps == self.total_steps


class DiaryListParams(BaseModel):
    """Query parameters of the list page and list API.

    Parsing is lenient: malformed values degrade to "no filter" instead of
    failing the request.
    """

    model_config = ConfigDict(populate_by_name=True)

    search: Optional[str] = None
    sort_by: SortBy = Field(default=SortBy.DATE_DESC, alias="sortBy")
    emotion_tag_id: Optional[int] = Field(default=None, alias="emotionTagId")
    completion: CompletionFilter = CompletionFilter.ALL
    date_from: Optional[date] = Field(default=None, alias="dateFrom")
    date_to: Optional[date] = Field(default=None, alias="dateTo")
    page: int = 1
    limit: Optional[int] = None

    @field_validator("search", mode="before")
    @classmethod
    def _blank_search(cls, value):
        if value is None or not str(value).strip():
            return None
        return str(value)

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort(cls, value):
        return SortBy.parse(value)

    @field_validator("completion", mode="before")
    @classmethod
    def _completion(cls, value):
        return CompletionFilter.parse(value)

    @field_validator("emotion_tag_id", mode="before")
    @classmethod
    def _tag_id(cls, value):
        try:
            tag_id = int(value)
        except (TypeError, ValueError):
            return None
        return tag_id if tag_id > 0 else None

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _dates(cls, value):
        if isinstance(value, date):
            return value
        return parse_optional_date(value)

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, value):
        try:
            return max(int(value), 1)
        except (TypeError, ValueError):
            return 1

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, value):
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @property
    def selected_date(self) -> Optional[date]:
        """The single day picked on the calendar, if the range is one day."""
        if self.date_from and self.date_from == self.date_to:
            return self.date_from
        return None

    def to_query(self, **overrides) -> dict:
        """Query-string dict for links. Any change other than ``page`` resets it to 1."""
        values = {
            "search": self.search,
            "sortBy": self.sort_by.value,
            "emotionTagId": self.emotion_tag_id,
            "completion": self.completion.value,
            "dateFrom": self.date_from.isoformat() if self.date_from else None,
            "dateTo": self.date_to.isoformat() if self.date_to else None,
            "page": self.page,
        }
        for key, value in overrides.items():
            if isinstance(value, enum.Enum):
                value = value.value
            elif isinstance(value, date):
                value = value.isoformat()
            values[key] = value
        if any(key != "page" for key in overrides):
            values["page"] = 1
        if values["completion"] == CompletionFilter.ALL.value:
            values["completion"] = None
        return {k: v for k, v in values.items() if v not in (None, "")}


class DiaryEntryCreate(BaseModel):
    date: dt.date
    short_content: Optional[str] = Field(default=None, max_length=SUMMARY_MAX_LENGTH)
    situation: Optional[str] = Field(default=None, max_length=DETAIL_MAX_LENGTH)
    reaction: Optional[str] = Field(default=None, max_length=DETAIL_MAX_LENGTH)
    physical_sensation: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    desired_reaction: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    gratitude_moment: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    self_kind_words: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    image_url: Optional[str] = None
    emotion_tag_ids: List[int] = Field(default_factory=list)


class DiaryEntryUpdate(BaseModel):
    short_content: Optional[str] = Field(default=None, max_length=SUMMARY_MAX_LENGTH)
    situation: Optional[str] = Field(default=None, max_length=DETAIL_MAX_LENGTH)
    reaction: Optional[str] = Field(default=None, max_length=DETAIL_MAX_LENGTH)
    physical_sensation: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    desired_reaction: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    gratitude_moment: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    self_kind_words: Optional[str] = Field(default=None, max_length=NARRATIVE_MAX_LENGTH)
    image_url: Optional[str] = None
    emotion_tag_ids: Optional[List[int]] = None


class CalendarDatesParams(BaseModel):
    year: Optional[int] = Field(default=None, ge=1, le=9999)
