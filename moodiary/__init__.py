"""moodiary application factory and bootstrap."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from flask import Flask, redirect, request, url_for

from moodiary.config import config_by_name
from moodiary.core.errors import DiaryError
from moodiary.core.events.event_bus import event_bus
from moodiary.core.profiles.context import reset_profile_context
from moodiary.core.utils.decorators import csrf_token
from moodiary.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the moodiary Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(
        __name__,
        instance_path=str(instance_root),
        instance_relative_config=True,
        template_folder=str(Path(__file__).parent / "templates"),
    )
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)
    _configure_logging(app)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = Path(db_uri.replace("sqlite:///", "", 1))
        if not db_path.is_absolute():
            db_path = project_root / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}"

    init_extensions(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    app.extensions["event_bus"] = event_bus
    app.before_request(reset_profile_context)

    from moodiary.domains.emotions.services import emotion_service

    emotion_service.register_subscriptions(event_bus)

    @app.context_processor
    def inject_csrf_token():
        return {"csrf_token": csrf_token}

    @app.get("/")
    def index():
        return redirect(url_for("diary_pages.diary_list"))

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    from moodiary.scripts.seed_emotions import register_commands

    register_commands(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger("moodiary").setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from moodiary.domains.diaries.controllers.diary_api import diary_api_bp
    from moodiary.domains.diaries.controllers.diary_pages import diary_pages_bp
    from moodiary.domains.emotions.controllers.emotion_api import emotion_api_bp

    app.register_blueprint(diary_api_bp, url_prefix="/api/diaries")
    app.register_blueprint(diary_pages_bp, url_prefix="/diary")
    app.register_blueprint(emotion_api_bp, url_prefix="/api/emotions")


def _wants_json() -> bool:
    return request.path.startswith("/api/") or request.is_json


def _register_error_handlers(app: Flask) -> None:
    """JSON error responses for the API, plain status pages elsewhere."""
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(DiaryError)
    def _domain_error(exc: DiaryError):
        if exc.status_code >= 500:
            app.logger.warning("Store error on %s: %s", request.path, exc)
        return {"ok": False, "error": exc.code, "message": str(exc)}, exc.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        if not _wants_json():
            return exc
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500
