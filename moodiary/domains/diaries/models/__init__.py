from moodiary.domains.diaries.models.diary import TEXT_FIELDS, TOTAL_STEPS, Diary, DiaryTag

__all__ = ["Diary", "DiaryTag", "TEXT_FIELDS", "TOTAL_STEPS"]
