"""Domain error taxonomy shared by services and controllers."""

from __future__ import annotations


class DiaryError(Exception):
    """Base class for errors raised at the store boundary."""

    code = "unexpected_error"
    status_code = 500

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        super().__init__(message or code or self.code)
        if code:
            self.code = code


class ValidationError(DiaryError):
    """A constraint was violated; surfaced to the user, never retried."""

    code = "validation_error"
    status_code = 400


class EntryConflictError(ValidationError):
    """A live entry already occupies the (profile, date) slot."""

    code = "duplicate_entry_date"
    status_code = 409


class NotFoundError(DiaryError):
    code = "not_found"
    status_code = 404


class TransientIOError(DiaryError):
    """Store or network failure; the caller may retry."""

    code = "store_unavailable"
    status_code = 503


class FormBusyError(DiaryError):
    """A save is already in flight for this form."""

    code = "save_pending"
    status_code = 409


__all__ = [
    "DiaryError",
    "EntryConflictError",
    "FormBusyError",
    "NotFoundError",
    "TransientIOError",
    "ValidationError",
]
