"""Error types shared by services, API handlers and the CLI.

Every error carries a human-readable ``message`` and a stable ``code``
that the dashboard uses to decide which affordances to show.
"""

from __future__ import annotations


class StaffdeskError(Exception):
    """Base error for all domain failures."""

    code = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(StaffdeskError):
    """Raised when a record does not exist or was soft-deleted."""

    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(f"{entity} not found: {identifier}")
        self.entity = entity
        self.identifier = identifier


class ValidationFailedError(StaffdeskError):
    """Raised when submitted data fails field validation.

    ``errors`` holds one message per failing field so forms can render
    them inline.
    """

    code = "validation_failed"
    status_code = 422

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) if errors else "Validation failed")
        self.errors = errors


class PermissionDeniedError(StaffdeskError):
    """Raised when the operator may not act on a record."""

    code = "permission_denied"
    status_code = 403


class ConflictError(StaffdeskError):
    """Raised for illegal state transitions (e.g. paying a pending commission)."""

    code = "conflict"
    status_code = 409


def parse_error(exc: BaseException) -> dict:
    """Reduce any exception to the ``{message, code}`` shape shown to users."""
    if isinstance(exc, StaffdeskError):
        parsed = {"message": exc.message, "code": exc.code}
        if isinstance(exc, ValidationFailedError):
            parsed["errors"] = list(exc.errors)
        return parsed
    message = str(exc) or type(exc).__name__
    return {"message": message, "code": "internal_error"}
