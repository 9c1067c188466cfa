"""
collegeconnect.errors — Typed Error Taxonomy
=============================================

Services raise these; they never catch and swallow them.  The API layer
(:mod:`collegeconnect.api.main`) is solely responsible for mapping each
kind to an HTTP status and the ``{"success": false, ...}`` envelope.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FieldError:
    """One violated field in a validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class CollegeConnectError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CollegeConnectError):
    """Malformed or out-of-range input.  Carries every violated field."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: str | None = None,
        errors: list[FieldError] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = list(errors or [])

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, [FieldError(field, message)])


class NotFound(CollegeConnectError):
    """Referenced entity is absent or logically deleted."""

    status_code = 404
    default_message = "Resource not found"


class Forbidden(CollegeConnectError):
    """Actor lacks ownership or role for the action."""

    status_code = 403
    default_message = "Not authorized to perform this action"


class Conflict(CollegeConnectError):
    """Request conflicts with current state (duplicate, terminal, full)."""

    status_code = 409
    default_message = "Request conflicts with the current state"


class AlreadyVoted(Conflict):
    """User already holds a vote in the requested direction."""

    # The public API has always answered duplicate votes with 400.
    status_code = 400
    default_message = "You have already voted"


class InternalError(CollegeConnectError):
    """Unexpected store failure."""

    status_code = 500
