"""Errors raised by the review core.

Every error leaves the flashcard's scheduling fields as they were before the
call. ``code`` and ``status_code`` are used by the HTTP layer to render the
JSON error body.
"""

from __future__ import annotations


class VibelessError(Exception):
    code = "error"
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidInput(VibelessError):
    code = "invalid_input"
    status_code = 400


class NotFound(VibelessError):
    code = "not_found"
    status_code = 404


class Forbidden(VibelessError):
    code = "forbidden"
    status_code = 403


class StorageFailure(VibelessError):
    """The store was unavailable or the commit failed. Not retried internally."""

    code = "storage_failure"
    status_code = 503


class ReviewConflict(StorageFailure):
    """Another review of the same flashcard committed first; nothing was written."""

    code = "review_conflict"
    status_code = 409
