from moodiary.domains.emotions.models.emotion_tag import (
    CATEGORY_COLORS,
    DEFAULT_TAG_COLOR,
    EmotionCategory,
    EmotionTag,
)

__all__ = ["CATEGORY_COLORS", "DEFAULT_TAG_COLOR", "EmotionCategory", "EmotionTag"]
