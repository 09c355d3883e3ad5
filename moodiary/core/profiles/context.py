"""Request-scoped profile identity.

Authentication is out of scope: a request is attributed to the JWT identity
when one is present, otherwise to the configured placeholder profile. Services
never read this themselves; controllers resolve it once and pass the id down.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, g, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from moodiary.core.errors import NotFoundError

_G_KEY = "profile_context"


@dataclass(frozen=True)
class ProfileContext:
    profile_id: str
    is_placeholder: bool = False


def resolve_profile() -> ProfileContext:
    """Build the context for the current request."""
    identity = None
    try:
        verify_jwt_in_request(optional=True)
        identity = get_jwt_identity()
    except (JWTExtendedException, PyJWTError):
        current_app.logger.warning("Ignoring invalid access token on %s", request.path)
    if identity:
        return ProfileContext(profile_id=str(identity))
    fallback = current_app.config.get("DEFAULT_PROFILE_ID")
    if not fallback:
        raise NotFoundError(code="profile_not_found")
    return ProfileContext(profile_id=str(fallback), is_placeholder=True)


def current_profile() -> ProfileContext:
    """Return the cached context for this request, resolving it on first use."""
    ctx = g.get(_G_KEY)
    if ctx is None:
        ctx = resolve_profile()
        setattr(g, _G_KEY, ctx)
    return ctx


def reset_profile_context() -> None:
    """Drop a context cached by an earlier request sharing this app context."""
    g.pop(_G_KEY, None)
