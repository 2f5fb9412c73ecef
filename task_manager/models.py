# task_manager/models.py
"""Task model and the input schemas used to validate create/update payloads."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON (``due_date`` <-> ``dueDate``)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def parse_due_date(v):
    """Accept ``YYYY-MM-DD`` strings or dates. Numbers are rejected, not read as timestamps."""
    if v is None or isinstance(v, date):
        return v
    if not isinstance(v, str):
        raise ValueError("must be a date string in YYYY-MM-DD format")
    return date.fromisoformat(v.strip())


class TaskCreate(CamelModel):
    """Fields accepted on create and on full-replace update.

    Strings are trimmed before the length checks run, so a blank title is
    rejected and an empty description is stored as ``None``.
    """
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[date] = None

    due_date_is_iso = field_validator("due_date", mode="before")(parse_due_date)

    @field_validator("description")
    @classmethod
    def empty_description_is_unset(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class TaskUpdate(CamelModel):
    """Partial update. Only fields present in the payload are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: Optional[TaskStatus] = None
    due_date: Optional[date] = None

    due_date_is_iso = field_validator("due_date", mode="before")(parse_due_date)

    @field_validator("title", "status")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v

    @field_validator("description")
    @classmethod
    def empty_description_is_unset(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class Task(CamelModel):
    """A stored task as returned by stores and the API."""
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
