from __future__ import annotations

import pytest
from flask_jwt_extended import create_access_token

pytestmark = pytest.mark.integration

from moodiary.core.profiles.context import current_profile, resolve_profile
from moodiary.core.profiles.models import Profile
from moodiary.core.profiles.services import ensure_profile
from moodiary.domains.emotions.models import EmotionTag
from moodiary.extensions import db


def test_placeholder_profile_without_token(app, profile_id):
    with app.test_request_context("/diary"):
        ctx = resolve_profile()
    assert ctx.profile_id == profile_id
    assert ctx.is_placeholder is True


def test_jwt_identity_wins(app):
    token = create_access_token(identity="abc-123")
    with app.test_request_context("/diary", headers={"Authorization": f"Bearer {token}"}):
        ctx = current_profile()
        assert current_profile() is ctx
    assert ctx.profile_id == "abc-123"
    assert ctx.is_placeholder is False


def test_invalid_token_falls_back_to_placeholder(app, profile_id):
    with app.test_request_context("/diary", headers={"Authorization": "Bearer not-a-token"}):
        ctx = resolve_profile()
    assert ctx.profile_id == profile_id


def test_missing_placeholder_is_an_error(app):
    from moodiary.core.errors import NotFoundError

    app.config["DEFAULT_PROFILE_ID"] = None
    with app.test_request_context("/diary"):
        with pytest.raises(NotFoundError):
            resolve_profile()


def test_ensure_profile_creates_once(app):
    ensure_profile("new-profile", display_name="New")
    db.session.commit()
    assert ensure_profile("new-profile").display_name == "New"
    assert Profile.query.filter_by(id="new-profile").count() == 1


def test_seed_emotions_command(app):
    EmotionTag.query.filter_by(name="Calm").delete()
    db.session.commit()

    runner = app.test_cli_runner()
    result = runner.invoke(args=["seed-emotions"])
    assert result.exit_code == 0
    assert "Seeded 1 default emotion tag(s)" in result.output

    result = runner.invoke(args=["seed-emotions", "--no-profile"])
    assert "Seeded 0 default emotion tag(s)" in result.output
    assert EmotionTag.query.filter_by(is_default=True).count() == 10
