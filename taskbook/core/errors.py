"""Error taxonomy shared by the services, the CLI and the HTTP layer."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


class TaskbookError(Exception):
    """Base class for errors surfaced to callers as a structured response."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class NotFoundError(TaskbookError):
    """A referenced user or task id does not resolve."""

    kind = "not_found"
    status_code = 404


class UnauthorizedError(TaskbookError):
    """Missing/invalid identity or bad credentials."""

    kind = "unauthorized"
    status_code = 401


class ForbiddenError(UnauthorizedError):
    """Caller is authenticated but does not own the task."""

    kind = "forbidden"
    status_code = 403


class ValidationError(TaskbookError):
    """Malformed input, rejected before any store mutation."""

    kind = "validation"
    status_code = 400


def format_errors(errors: list) -> str:
    """Render pydantic-style error dicts as one line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid input"


def from_pydantic(exc: PydanticValidationError) -> ValidationError:
    """Collapse a pydantic error into a single readable ValidationError."""
    return ValidationError(format_errors(exc.errors()))
