"""Emotion tag request/response schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from moodiary.domains.emotions.models import EmotionCategory


class EmotionTagView(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    category: Optional[EmotionCategory] = None
    is_default: Optional[bool] = None
    usage_count: Optional[int] = None


class EmotionTagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    category: EmotionCategory = EmotionCategory.NEUTRAL
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class EmotionTagListParams(BaseModel):
    scope: str = Field(default="all", pattern=r"^(all|default|custom)$")
