"""Typed errors raised by the letter workflow and its collaborators."""

from typing import Optional


class WorkflowError(Exception):
    """Base error carrying a stable code and the HTTP status it maps to."""

    code = "WORKFLOW_ERROR"
    http_status = 500
    retryable = False

    def __init__(self, message: str, errors: Optional[list[dict]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class NotFoundError(WorkflowError):
    """Referenced record is absent or soft-deleted."""

    code = "NOT_FOUND"
    http_status = 404


class InvalidTransitionError(WorkflowError):
    """Action is not legal from the request's current status."""

    code = "INVALID_TRANSITION"
    http_status = 400


class ConcurrentModificationError(WorkflowError):
    """Conditional update lost the race; re-read and decide whether to resubmit."""

    code = "CONCURRENT_MODIFICATION"
    http_status = 409
    retryable = True


class TransitionTimeoutError(ConcurrentModificationError):
    """Transaction hit the store's lock or statement timeout and was rolled back."""

    code = "TRANSITION_TIMEOUT"


class ValidationError(WorkflowError):
    """Malformed input, rejected before storage is touched."""

    code = "VALIDATION_ERROR"
    http_status = 400


class ConflictError(WorkflowError):
    """Uniqueness violation."""

    code = "CONFLICT"
    http_status = 409
