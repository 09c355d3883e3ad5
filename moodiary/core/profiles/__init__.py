from moodiary.core.profiles.context import ProfileContext, current_profile
from moodiary.core.profiles.models import Profile

__all__ = ["Profile", "ProfileContext", "current_profile"]
