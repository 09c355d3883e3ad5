"""Flask extension singletons, bound to the app in ``init_extensions``."""

from pathlib import Path

from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def rate_limit_key() -> str:
    """Bucket token holders by profile, everyone else by address."""
    from moodiary.core.errors import DiaryError
    from moodiary.core.profiles.context import current_profile

    try:
        ctx = current_profile()
    except DiaryError:
        return get_remote_address()
    if ctx.is_placeholder:
        return get_remote_address()
    return f"profile:{ctx.profile_id}"


# Entries are handed to templates after commit, so keep attributes loaded.
db = SQLAlchemy(session_options={"expire_on_commit": False})
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=rate_limit_key, enabled=True, default_limits=["200 per hour"])


def init_extensions(app) -> None:
    db.init_app(app)
    migrate.init_app(app, db, directory=str(MIGRATIONS_DIR), render_as_batch=True)
    jwt.init_app(app)

    limiter.enabled = app.config.get("RATELIMIT_ENABLED", True)
    limiter.default_limits = [app.config.get("RATELIMIT_DEFAULT", "200 per hour")]
    limiter.storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    limiter.init_app(app)
    app.logger.debug(
        "Extensions ready for %s (rate limiting %s)",
        app.import_name,
        "on" if limiter.enabled else "off",
    )
