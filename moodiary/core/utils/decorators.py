"""Controller decorators and the session CSRF token they check."""

from __future__ import annotations

import secrets
from functools import wraps
from typing import Callable, Optional, TypeVar

from flask import abort, current_app, jsonify, request, session

F = TypeVar("F", bound=Callable)

CSRF_SESSION_KEY = "_csrf_token"
CSRF_HEADER = "X-CSRF-Token"
CSRF_FIELD = "csrf_token"


def csrf_token() -> str:
    """Session-scoped token, minted on first use and rendered into forms."""
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        session[CSRF_SESSION_KEY] = token
    return token


def _submitted_token() -> Optional[str]:
    return request.headers.get(CSRF_HEADER) or request.form.get(CSRF_FIELD)


def csrf_protected(fn: F) -> F:
    """Reject writes whose token is missing or differs from the session's.

    JSON callers get the error envelope; form posts get a plain 403.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[misc]
        if not current_app.config.get("WTF_CSRF_ENABLED", True):
            return fn(*args, **kwargs)
        expected = session.get(CSRF_SESSION_KEY)
        submitted = _submitted_token()
        if not expected or not submitted or not secrets.compare_digest(submitted, expected):
            if request.is_json or request.path.startswith("/api/"):
                return jsonify({"ok": False, "error": "csrf_failed"}), 403
            abort(403, description="csrf_failed")
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
