"""Profile bookkeeping."""

from __future__ import annotations

import logging
from typing import Optional

from moodiary.core.profiles.models import Profile
from moodiary.extensions import db

logger = logging.getLogger(__name__)


def ensure_profile(profile_id: str, display_name: Optional[str] = None) -> Profile:
    """Return the profile row, staging it in the session when it is missing.

    The caller commits.
    """
    profile = db.session.get(Profile, profile_id)
    if profile is None:
        profile = Profile(id=profile_id, display_name=display_name)
        db.session.add(profile)
        db.session.flush()
        logger.info("Created profile %s", profile_id)
    return profile
