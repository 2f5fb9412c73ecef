# task_manager/errors.py
"""Domain errors raised by task stores."""

from typing import Any, Iterable


def format_errors(errors: Iterable[dict[str, Any]]) -> str:
    """Join pydantic-style error dicts into one readable message.

    Each entry becomes ``"<loc>: <msg>"``; entries without a location
    contribute only their message.
    """
    parts = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


class TaskError(Exception):
    """Base class for task store errors."""


class ValidationError(TaskError):
    """Input failed a task field constraint."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        """Build from a ``pydantic.ValidationError``."""
        return cls(format_errors(exc.errors()))


class NotFoundError(TaskError):
    """No task exists with the requested id."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id
        self.message = str(self)
