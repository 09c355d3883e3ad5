"""Five-step diary wizard.

The wizard holds the form data in memory and hands it to a ``save`` callable
(normally ``diary_service.save_form`` bound to a profile) on step save and on
submit. It never touches the database itself.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from moodiary.core.errors import FormBusyError, ValidationError
from moodiary.domains.diaries.forms import DiaryFormData, truncate
from moodiary.domains.diaries.models import TEXT_FIELDS
from moodiary.domains.diaries.schemas.diary_schemas import DiaryEntryView
from moodiary.domains.emotions.models import CATEGORY_COLORS, EmotionCategory
from moodiary.domains.emotions.schemas.emotion_schemas import EmotionTagView

logger = logging.getLogger(__name__)

SaveFn = Callable[[DiaryFormData, Optional[int]], DiaryEntryView]


class StepId(enum.IntEnum):
    EMOTIONS = 1
    SUMMARY = 2
    SITUATION = 3
    BODY = 4
    KINDNESS = 5


@dataclass(frozen=True)
class StepSpec:
    title: str
    description: str
    fields: tuple


STEPS: Dict[StepId, StepSpec] = {
    StepId.EMOTIONS: StepSpec(
        "How are you feeling?",
        "Pick the emotions that describe today.",
        ("emotion_tags",),
    ),
    StepId.SUMMARY: StepSpec(
        "Today in a sentence",
        "Sum up the day and attach a picture if you like.",
        ("short_content", "image"),
    ),
    StepId.SITUATION: StepSpec(
        "What happened?",
        "Describe the situation and how you reacted.",
        ("situation", "reaction"),
    ),
    StepId.BODY: StepSpec(
        "Body and wishes",
        "Notice what you felt physically and how you would like to have reacted.",
        ("physical_sensation", "desired_reaction"),
    ),
    StepId.KINDNESS: StepSpec(
        "Gratitude and kindness",
        "Write down one thing you are grateful for and a kind word to yourself.",
        ("gratitude_moment", "self_kind_words"),
    ),
}

FIRST_STEP = min(StepId)
LAST_STEP = max(StepId)


def _clamp_step(step) -> StepId:
    try:
        value = int(step)
    except (TypeError, ValueError):
        return FIRST_STEP
    return StepId(min(max(value, FIRST_STEP), LAST_STEP))


def remaining_steps_message(remaining: int) -> str:
    return f"{remaining} step{'' if remaining == 1 else 's'} remaining"


class SteppedDiaryForm:
    """State machine behind the diary wizard.

    Store failures propagate unchanged; when they do, the step, the data and
    the saved-step set stay as they were.
    """

    def __init__(
        self,
        save: SaveFn,
        data: DiaryFormData,
        *,
        current_step=FIRST_STEP,
        saved_steps=None,
        entry_id: Optional[int] = None,
        custom_tags: Optional[List[EmotionTagView]] = None,
        confirming_completion: bool = False,
    ) -> None:
        self._save = save
        self.data = data
        self.current_step = _clamp_step(current_step)
        self.saved_steps: Set[StepId] = {_clamp_step(s) for s in saved_steps or ()}
        self.entry_id = entry_id
        self.custom_tags: List[EmotionTagView] = list(custom_tags or [])
        self.confirming_completion = confirming_completion
        self.pending = False
        self.submitted: Optional[DiaryEntryView] = None

    # ---------- navigation ----------

    @property
    def step(self) -> StepSpec:
        return STEPS[self.current_step]

    @property
    def is_first_step(self) -> bool:
        return self.current_step == FIRST_STEP

    @property
    def is_last_step(self) -> bool:
        return self.current_step == LAST_STEP

    @property
    def remaining_steps(self) -> int:
        return int(LAST_STEP) - int(self.current_step)

    def next(self) -> None:
        if self.pending:
            return
        self.current_step = _clamp_step(self.current_step + 1)

    def previous(self) -> None:
        if self.pending:
            return
        self.current_step = _clamp_step(self.current_step - 1)

    def go_to(self, step) -> None:
        if self.pending:
            return
        self.current_step = _clamp_step(step)

    # ---------- field edits ----------

    def edit_field(self, name: str, value: Optional[str]) -> None:
        if name not in TEXT_FIELDS:
            raise ValueError(f"Unknown diary field: {name}")
        setattr(self.data, name, truncate(name, value))

    def edit_fields(self, values: Mapping[str, Optional[str]]) -> None:
        for name, value in values.items():
            if name in TEXT_FIELDS:
                self.edit_field(name, value)

    def toggle_tag(self, tag: EmotionTagView) -> None:
        selected = self.data.emotion_tags
        for index, existing in enumerate(selected):
            if existing.id == tag.id:
                del selected[index]
                return
        selected.append(tag)

    def add_custom_tag(self, name: str, category=EmotionCategory.NEUTRAL) -> EmotionTagView:
        """Create a not-yet-persisted tag with a temporary id and select it."""
        name_norm = (name or "").strip()
        if not name_norm:
            raise ValidationError(code="invalid_tag_name")
        for tag in self.custom_tags:
            if tag.name.lower() == name_norm.lower():
                if tag.id not in self.data.tag_ids():
                    self.data.emotion_tags.append(tag)
                return tag
        parsed = EmotionCategory.parse(category) or EmotionCategory.NEUTRAL
        used = [t.id for t in self.custom_tags] + self.data.tag_ids()
        temp_id = min(min(used, default=0), 0) - 1
        tag = EmotionTagView(
            id=temp_id,
            name=name_norm,
            color=CATEGORY_COLORS[parsed],
            category=parsed,
            is_default=False,
            usage_count=0,
        )
        self.custom_tags.append(tag)
        self.data.emotion_tags.append(tag)
        return tag

    def attach_image(self, file_name: str, preview: Optional[str] = None) -> None:
        """One image at a time; attaching replaces the previous one."""
        self.data.image_file = file_name
        self.data.image_preview = preview or file_name
        self.data.image_url = None

    def remove_image(self) -> None:
        self.data.image_file = None
        self.data.image_preview = None
        self.data.image_url = None

    # ---------- persistence ----------

    def _persist(self) -> DiaryEntryView:
        if self.pending:
            raise FormBusyError("A save is already in progress")
        self.pending = True
        try:
            entry = self._save(self.data.copy(), self.entry_id)
        finally:
            self.pending = False
        self.entry_id = entry.id
        self._adopt_saved_tags(entry)
        return entry

    def _adopt_saved_tags(self, entry: DiaryEntryView) -> None:
        # Temporary ids are replaced by the ids the store assigned.
        self.data.emotion_tags = list(entry.emotion_tags)
        persisted = {t.name.lower() for t in entry.emotion_tags}
        self.custom_tags = [t for t in self.custom_tags if t.name.lower() not in persisted]

    def save_step(self) -> DiaryEntryView:
        entry = self._persist()
        self.saved_steps.add(self.current_step)
        logger.debug("Saved step %s of diary %s", int(self.current_step), entry.id)
        return entry

    def submit(self) -> DiaryEntryView:
        entry = self._persist()
        self.confirming_completion = False
        self.submitted = entry
        return entry

    def request_completion(self) -> Optional[DiaryEntryView]:
        """Submit on the last step; earlier, open the confirmation instead."""
        if self.is_last_step:
            return self.submit()
        self.confirming_completion = True
        return None

    @property
    def completion_message(self) -> str:
        return remaining_steps_message(self.remaining_steps)

    def confirm_completion(self) -> DiaryEntryView:
        return self.submit()

    def cancel_completion(self) -> None:
        self.confirming_completion = False

    # ---------- serialization ----------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_step": int(self.current_step),
            "saved_steps": sorted(int(s) for s in self.saved_steps),
            "entry_id": self.entry_id,
            "confirming_completion": self.confirming_completion,
            "custom_tags": [t.model_dump(mode="json") for t in self.custom_tags],
            "data": self.data.to_dict(),
        }

    @classmethod
    def from_dict(cls, state: Optional[Mapping[str, Any]], save: SaveFn) -> "SteppedDiaryForm":
        """Rebuild a wizard from ``to_dict`` output.

        State that does not have that shape raises ValueError.
        """
        state = state or {}
        if not isinstance(state, Mapping):
            raise ValueError("invalid_form_state: not an object")
        try:
            entry_id = state.get("entry_id")
            if entry_id is not None and (isinstance(entry_id, bool) or int(entry_id) <= 0):
                raise ValueError(f"entry_id {entry_id!r}")
            return cls(
                save,
                DiaryFormData.from_dict(state.get("data") or {}),
                current_step=state.get("current_step", FIRST_STEP),
                saved_steps=list(state.get("saved_steps") or ()),
                entry_id=int(entry_id) if entry_id is not None else None,
                custom_tags=[EmotionTagView.model_validate(t) for t in state.get("custom_tags") or []],
                confirming_completion=bool(state.get("confirming_completion")),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise ValueError(f"invalid_form_state: {exc}") from exc
