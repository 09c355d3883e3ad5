"""Diary entries and their emotion tag links."""

from __future__ import annotations

import datetime as dt
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship

from moodiary.extensions import db

# Free-text fields counted towards completion, in wizard order.
TEXT_FIELDS = (
    "short_content",
    "situation",
    "reaction",
    "physical_sensation",
    "desired_reaction",
    "gratitude_moment",
    "self_kind_words",
)
TOTAL_STEPS = len(TEXT_FIELDS)


class Diary(db.Model):
    __tablename__ = "diary"
    __table_args__ = (
        db.UniqueConstraint("profile_id", "date", name="ux_diary_profile_date"),
        db.Index("ix_diary_profile_deleted_date", "profile_id", "is_deleted", "date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    profile_id: Mapped[str] = mapped_column(
        db.ForeignKey("profile.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date: Mapped[dt.date] = mapped_column(db.Date, nullable=False)
    short_content: Mapped[str | None] = mapped_column(db.Text)
    situation: Mapped[str | None] = mapped_column(db.Text)
    reaction: Mapped[str | None] = mapped_column(db.Text)
    physical_sensation: Mapped[str | None] = mapped_column(db.Text)
    desired_reaction: Mapped[str | None] = mapped_column(db.Text)
    gratitude_moment: Mapped[str | None] = mapped_column(db.Text)
    self_kind_words: Mapped[str | None] = mapped_column(db.Text)
    image_url: Mapped[str | None] = mapped_column(db.Text)
    is_deleted: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    tag_links: Mapped[list["DiaryTag"]] = relationship(
        "DiaryTag",
        back_populates="diary",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Diary(id={self.id}, date={self.date}, deleted={self.is_deleted})>"


class DiaryTag(db.Model):
    __tablename__ = "diary_tag"
    __table_args__ = (
        db.UniqueConstraint("diary_id", "emotion_tag_id", name="ux_diary_tag_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    diary_id: Mapped[int] = mapped_column(
        db.ForeignKey("diary.id", ondelete="CASCADE"), index=True, nullable=False
    )
    emotion_tag_id: Mapped[int] = mapped_column(
        db.ForeignKey("emotion_tag.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    diary: Mapped[Diary] = relationship("Diary", back_populates="tag_links")
