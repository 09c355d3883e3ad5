from datetime import date

import pytest

from moodiary import create_app
from moodiary.core.profiles.models import Profile
from moodiary.domains.diaries.forms import DiaryFormData
from moodiary.domains.emotions.services.emotion_service import seed_default_tags
from moodiary.extensions import db

OTHER_PROFILE_ID = "5d1c7a1e-2f4b-4f0e-9a53-7c1b9e0d2a11"


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")


@pytest.fixture()
def app():
    """Per-test app on a fresh in-memory schema with the default tags seeded."""
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        db.session.add(Profile(id=app.config["DEFAULT_PROFILE_ID"], display_name="Tester"))
        db.session.add(Profile(id=OTHER_PROFILE_ID, display_name="Someone else"))
        db.session.commit()
        seed_default_tags()
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def profile_id(app):
    return app.config["DEFAULT_PROFILE_ID"]


@pytest.fixture()
def make_form():
    """Build form data; ``filled`` fills the first N text fields."""
    from moodiary.domains.diaries.models import TEXT_FIELDS

    def _make(day=date(2024, 12, 15), filled=0, tags=None, **fields):
        values = {name: f"{name} text" for name in TEXT_FIELDS[:filled]}
        values.update(fields)
        return DiaryFormData(date=day, emotion_tags=list(tags or []), **values)

    return _make
