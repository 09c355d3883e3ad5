"""Emotion tag JSON API."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from moodiary.core.profiles import current_profile
from moodiary.core.utils.decorators import csrf_protected
from moodiary.domains.emotions.mappers import map_tag
from moodiary.domains.emotions.schemas.emotion_schemas import (
    EmotionTagCreate,
    EmotionTagListParams,
)
from moodiary.domains.emotions.services import emotion_service
from moodiary.extensions import limiter

emotion_api_bp = Blueprint("emotion_api", __name__)


@emotion_api_bp.get("")
@limiter.limit("240/minute")
def list_emotions():
    try:
        params = EmotionTagListParams.model_validate(request.args.to_dict())
    except ValidationError as exc:
        return jsonify({"ok": False, "error": "validation_error", "details": exc.errors()}), 400
    profile_id = current_profile().profile_id
    if params.scope == "default":
        tags = emotion_service.list_default_tags()
    elif params.scope == "custom":
        tags = emotion_service.list_custom_tags(profile_id)
    else:
        tags = emotion_service.list_tags(profile_id)
    return jsonify({"ok": True, "items": [map_tag(t).model_dump(mode="json") for t in tags]})


@emotion_api_bp.post("")
@limiter.limit("60/minute")
@csrf_protected
def create_emotion():
    payload = request.get_json(silent=True) or {}
    try:
        data = EmotionTagCreate.model_validate(payload)
    except ValidationError as exc:
        return jsonify({"ok": False, "error": "validation_error", "details": exc.errors()}), 400
    tag = emotion_service.create_custom_tag(
        current_profile().profile_id,
        name=data.name,
        category=data.category,
        color=data.color,
    )
    return jsonify({"ok": True, "tag": map_tag(tag).model_dump(mode="json")}), 201
