"""Diary domain event catalog."""

from __future__ import annotations

DIARY_ENTRY_CREATED = "diary.entry.created"
DIARY_ENTRY_UPDATED = "diary.entry.updated"
DIARY_ENTRY_DELETED = "diary.entry.deleted"

EVENT_CATALOG = {
    DIARY_ENTRY_CREATED: {
        "version": "v1",
        "payload": {
            "entry_id": "int",
            "profile_id": "str",
            "date": "date",
            "tag_ids": "list[int]",
            "completed_steps": "int",
        },
    },
    DIARY_ENTRY_UPDATED: {
        "version": "v1",
        "payload": {
            "entry_id": "int",
            "profile_id": "str",
            "tag_ids": "list[int]",
            "previous_tag_ids": "list[int]",
            "completed_steps": "int",
        },
    },
    DIARY_ENTRY_DELETED: {
        "version": "v1",
        "payload": {
            "entry_id": "int",
            "profile_id": "str",
            "tag_ids": "list[int]",
        },
    },
}

# Events that change which tags live entries reference.
TAG_USAGE_EVENTS = (DIARY_ENTRY_CREATED, DIARY_ENTRY_UPDATED, DIARY_ENTRY_DELETED)

__all__ = [
    "DIARY_ENTRY_CREATED",
    "DIARY_ENTRY_DELETED",
    "DIARY_ENTRY_UPDATED",
    "EVENT_CATALOG",
    "TAG_USAGE_EVENTS",
]
