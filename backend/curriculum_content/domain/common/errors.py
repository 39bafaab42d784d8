"""Domain error taxonomy. Every error is a rejected operation, never a crash."""
from __future__ import annotations


class ContentError(Exception):
    """Base class for every error the curriculum content engine reports."""

    code = "content_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ContentError):
    code = "validation_error"


class PermissionDenied(ContentError):
    code = "permission_denied"


class InvalidTransition(ContentError):
    code = "invalid_transition"


class MissingComment(ContentError):
    code = "missing_comment"


class InvalidStateError(ContentError):
    code = "invalid_state"


class ConflictError(ContentError):
    code = "conflict"


class InvalidOrderingError(ContentError):
    code = "invalid_ordering"


class NotFoundError(ContentError):
    code = "not_found"
