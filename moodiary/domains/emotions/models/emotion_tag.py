"""Emotion tags: shared defaults and profile-owned custom tags."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from moodiary.extensions import db

DEFAULT_TAG_COLOR = "#6B7280"


class EmotionCategory(str, enum.Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, value) -> "EmotionCategory | None":
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


CATEGORY_COLORS = {
    EmotionCategory.POSITIVE: "#10B981",
    EmotionCategory.NEGATIVE: "#EF4444",
    EmotionCategory.NEUTRAL: DEFAULT_TAG_COLOR,
}


class EmotionTag(db.Model):
    __tablename__ = "emotion_tag"
    __table_args__ = (
        db.UniqueConstraint("profile_id", "name", name="ux_emotion_tag_profile_name"),
        db.Index("ix_emotion_tag_is_default", "is_default"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[str | None] = mapped_column(
        db.ForeignKey("profile.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(db.String(64), nullable=False)
    color: Mapped[str | None] = mapped_column(db.String(16), default=DEFAULT_TAG_COLOR)
    category: Mapped[EmotionCategory | None] = mapped_column(
        db.Enum(
            EmotionCategory,
            name="emotion_category",
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
        ),
        default=EmotionCategory.NEUTRAL,
    )
    is_default: Mapped[bool | None] = mapped_column(default=False)
    usage_count: Mapped[int | None] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<EmotionTag(id={self.id}, name={self.name!r}, default={self.is_default})>"
