"""Diary and emotion JSON API tests.

Tests the endpoints:
- GET/POST /api/diaries
- GET /api/diaries/calendar
- GET/PATCH/DELETE /api/diaries/<id>
- GET/POST /api/emotions
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from flask_jwt_extended import create_access_token

pytestmark = pytest.mark.integration

from moodiary.core.errors import TransientIOError
from moodiary.domains.emotions.models import EmotionTag
from moodiary.tests.conftest import OTHER_PROFILE_ID


def _prime_csrf(client) -> str:
    """Insert CSRF token into client session."""
    token = "test-csrf-token"
    with client.session_transaction() as sess:
        sess["_csrf_token"] = token
    return token


def _joy_id():
    return EmotionTag.query.filter_by(name="Joy", is_default=True).one().id


def _create(client, **payload):
    body = {"date": "2024-12-15", "short_content": "A calm walk"}
    body.update(payload)
    return client.post("/api/diaries", json=body)


# ==================== Create ====================


def test_create_diary(client, profile_id):
    resp = _create(client, situation="Park", emotion_tag_ids=[_joy_id()])
    assert resp.status_code == 201
    entry = resp.get_json()["entry"]
    assert entry["date"] == "2024-12-15"
    assert entry["profile_id"] == profile_id
    assert entry["completed_steps"] == 2
    assert entry["total_steps"] == 7
    assert entry["completion_ratio"] == round(2 / 7, 4)
    assert [t["name"] for t in entry["emotion_tags"]] == ["Joy"]


def test_create_duplicate_date_conflicts(client):
    assert _create(client).status_code == 201
    resp = _create(client)
    assert resp.status_code == 409
    assert resp.get_json() == {
        "ok": False,
        "error": "duplicate_entry_date",
        "message": "An entry already exists for 2024-12-15",
    }


def test_create_validation_error(client):
    resp = _create(client, short_content="x" * 101)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"
    assert client.post("/api/diaries", json={}).status_code == 400


def test_create_with_unknown_tag(client):
    resp = _create(client, emotion_tag_ids=[4242])
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "tag_not_found"


def test_csrf_required_when_enabled(app, client):
    app.config["WTF_CSRF_ENABLED"] = True
    resp = _create(client)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "csrf_failed"

    token = _prime_csrf(client)
    resp = client.post(
        "/api/diaries",
        json={"date": "2024-12-15"},
        headers={"X-CSRF-Token": token},
    )
    assert resp.status_code == 201


# ==================== Read / update / delete ====================


def test_get_update_delete_roundtrip(client):
    entry_id = _create(client).get_json()["entry"]["id"]

    resp = client.get(f"/api/diaries/{entry_id}")
    assert resp.status_code == 200
    assert resp.get_json()["entry"]["short_content"] == "A calm walk"

    resp = client.patch(
        f"/api/diaries/{entry_id}",
        json={"reaction": "Smiled", "short_content": None, "emotion_tag_ids": [_joy_id()]},
    )
    assert resp.status_code == 200
    entry = resp.get_json()["entry"]
    assert entry["reaction"] == "Smiled"
    assert entry["short_content"] is None
    assert entry["completed_steps"] == 1
    assert len(entry["emotion_tags"]) == 1

    resp = client.patch(f"/api/diaries/{entry_id}", json={"situation": "Bus"})
    entry = resp.get_json()["entry"]
    assert entry["reaction"] == "Smiled"
    assert len(entry["emotion_tags"]) == 1

    assert client.delete(f"/api/diaries/{entry_id}").get_json() == {"ok": True}
    assert client.get(f"/api/diaries/{entry_id}").status_code == 404
    assert client.delete(f"/api/diaries/{entry_id}").status_code == 404


def test_get_missing_entry(client):
    resp = client.get("/api/diaries/999")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


# ==================== Listing ====================


def test_list_filters_and_paginates(client):
    for day in range(1, 8):
        _create(client, date=f"2024-12-{day:02d}", short_content=f"day {day}")
    _create(client, date="2024-11-30", short_content="Morning run", emotion_tag_ids=[_joy_id()])

    resp = client.get("/api/diaries")
    body = resp.get_json()
    assert body["ok"] is True
    assert [i["date"] for i in body["items"]] == [f"2024-12-{d:02d}" for d in (7, 6, 5, 4, 3)]
    assert body["has_next_page"] is True
    assert body["page"] == 1

    body = client.get("/api/diaries?page=2").get_json()
    assert [i["date"] for i in body["items"]] == ["2024-12-02", "2024-12-01", "2024-11-30"]
    assert body["has_next_page"] is False
    assert body["has_previous_page"] is True

    body = client.get("/api/diaries?search=MORNING").get_json()
    assert [i["date"] for i in body["items"]] == ["2024-11-30"]

    body = client.get(f"/api/diaries?emotionTagId={_joy_id()}&sortBy=date-asc").get_json()
    assert [i["date"] for i in body["items"]] == ["2024-11-30"]

    body = client.get("/api/diaries?dateFrom=2024-12-03&dateTo=2024-12-03").get_json()
    assert [i["short_content"] for i in body["items"]] == ["day 3"]


def test_list_is_scoped_to_jwt_identity(app, client):
    _create(client)
    with app.app_context():
        token = create_access_token(identity=OTHER_PROFILE_ID)
    resp = client.get("/api/diaries", headers={"Authorization": f"Bearer {token}"})
    assert resp.get_json()["items"] == []


def test_list_store_outage_returns_503(client):
    with patch(
        "moodiary.domains.diaries.services.diary_service.list_entries",
        side_effect=TransientIOError("database is locked"),
    ):
        resp = client.get("/api/diaries")
    assert resp.status_code == 503
    assert resp.get_json()["error"] == "store_unavailable"


def test_calendar_dates(client):
    _create(client, date="2024-12-15")
    _create(client, date="2023-01-02")
    assert client.get("/api/diaries/calendar?year=2024").get_json()["dates"] == ["2024-12-15"]
    assert client.get("/api/diaries/calendar").get_json()["dates"] == ["2023-01-02", "2024-12-15"]
    assert client.get("/api/diaries/calendar?year=0").status_code == 400


# ==================== Emotions ====================


def test_list_and_create_emotions(client):
    body = client.get("/api/emotions").get_json()
    assert len(body["items"]) == 10

    resp = client.post("/api/emotions", json={"name": "Relieved", "category": "positive"})
    assert resp.status_code == 201
    tag = resp.get_json()["tag"]
    assert tag["color"] == "#10B981"
    assert tag["is_default"] is False

    assert client.post("/api/emotions", json={"name": "Relieved"}).status_code == 409
    assert client.post("/api/emotions", json={"name": ""}).status_code == 400
    assert client.post("/api/emotions", json={"name": "X", "color": "red"}).status_code == 400

    custom = client.get("/api/emotions?scope=custom").get_json()["items"]
    assert [t["name"] for t in custom] == ["Relieved"]
    assert len(client.get("/api/emotions?scope=default").get_json()["items"]) == 10
    assert client.get("/api/emotions?scope=bogus").status_code == 400


def test_health(client):
    assert client.get("/health").get_json() == {"ok": True}
