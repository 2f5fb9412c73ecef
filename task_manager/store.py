# task_manager/store.py
"""Task stores: one contract, an in-memory and a relational implementation.

Every store validates input before touching its collection, so a failed call
never leaves a partial change behind. Tasks handed to callers are copies.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable

import pydantic
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from task_manager.database import TaskRow, create_db_and_tables
from task_manager.errors import NotFoundError, ValidationError
from task_manager.models import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

SQLITE_MIN_ID = -(2 ** 63)
SQLITE_MAX_ID = 2 ** 63 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_create(data: Any) -> dict:
    """Validate a create/full-replace payload and return its field values."""
    try:
        return TaskCreate.model_validate(data).model_dump()
    except pydantic.ValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


def validate_changes(data: Any, partial: bool) -> dict:
    """Validate an update payload and return the fields to overwrite."""
    if not partial:
        return validate_create(data)
    try:
        return TaskUpdate.model_validate(data).model_dump(exclude_unset=True)
    except pydantic.ValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


class TaskStore(ABC):
    """Owns the canonical task collection.

    ``data`` arguments are JSON-shaped mappings (camelCase or snake_case
    keys). Unknown keys, including ``id`` and ``createdAt``, are ignored.
    """

    kind: str = ""

    @abstractmethod
    def list(self) -> list[Task]:
        """Return all tasks, oldest first."""

    @abstractmethod
    def create(self, data: Any) -> Task:
        """Validate *data*, assign an id and store a new task."""

    @abstractmethod
    def get(self, task_id: int) -> Task:
        """Return the task with *task_id* or raise ``NotFoundError``."""

    @abstractmethod
    def update(self, task_id: int, data: Any, *, partial: bool = False) -> Task:
        """Replace (or, with *partial*, patch) the mutable fields of a task."""

    @abstractmethod
    def delete(self, task_id: int) -> Task:
        """Remove the task with *task_id* and return it."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every task. Ids handed out so far are still never reused."""


class InMemoryTaskStore(TaskStore):
    """Process-local store backed by a list and a monotonically increasing id."""

    kind = "memory"

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._tasks: list[Task] = []
        self._next_id = 1
        self._clock = clock
        self._lock = threading.Lock()

    def list(self) -> list[Task]:
        with self._lock:
            return [task.model_copy() for task in self._tasks]

    def create(self, data: Any) -> Task:
        fields = validate_create(data)
        with self._lock:
            now = self._clock()
            task = Task(id=self._next_id, created_at=now, updated_at=now, **fields)
            self._next_id += 1
            self._tasks = [*self._tasks, task]
        logger.info("Created task %d", task.id)
        return task.model_copy()

    def get(self, task_id: int) -> Task:
        with self._lock:
            return self._tasks[self._index_of(task_id)].model_copy()

    def update(self, task_id: int, data: Any, *, partial: bool = False) -> Task:
        with self._lock:
            index = self._index_of(task_id)
            changes = validate_changes(data, partial)
            updated = self._tasks[index].model_copy(
                update={**changes, "updated_at": self._clock()}
            )
            self._tasks = [*self._tasks[:index], updated, *self._tasks[index + 1:]]
        logger.info("Updated task %d (%s)", task_id, ", ".join(sorted(changes)) or "no fields")
        return updated.model_copy()

    def delete(self, task_id: int) -> Task:
        with self._lock:
            index = self._index_of(task_id)
            removed = self._tasks[index]
            self._tasks = [*self._tasks[:index], *self._tasks[index + 1:]]
        logger.info("Deleted task %d", task_id)
        return removed.model_copy()

    def clear(self) -> None:
        with self._lock:
            self._tasks = []

    def _index_of(self, task_id: int) -> int:
        """Position of *task_id* in the list. Caller must hold the lock."""
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        raise NotFoundError(task_id)


def _to_task(row: TaskRow) -> Task:
    """Copy a row into a detached ``Task``.

    SQLite drops tzinfo on the way back, so naive timestamps are read as UTC.
    """
    created_at, updated_at = (
        ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)
        for ts in (row.created_at, row.updated_at)
    )
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        status=row.status,
        due_date=row.due_date,
        created_at=created_at,
        updated_at=updated_at,
    )


class SqlTaskStore(TaskStore):
    """SQLModel-backed store. Each operation runs in its own transaction."""

    kind = "sql"

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = _utcnow) -> None:
        self._engine = engine
        self._clock = clock
        create_db_and_tables(engine)

    def list(self) -> list[Task]:
        with Session(self._engine) as session:
            rows = session.exec(select(TaskRow).order_by(TaskRow.id)).all()
            return [_to_task(row) for row in rows]

    def create(self, data: Any) -> Task:
        fields = validate_create(data)
        now = self._clock()
        row = TaskRow(created_at=now, updated_at=now, **fields)
        with Session(self._engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            task = _to_task(row)
        logger.info("Created task %d", task.id)
        return task

    def get(self, task_id: int) -> Task:
        with Session(self._engine) as session:
            return _to_task(self._get_row(session, task_id))

    def update(self, task_id: int, data: Any, *, partial: bool = False) -> Task:
        with Session(self._engine) as session:
            row = self._get_row(session, task_id)
            changes = validate_changes(data, partial)
            for key, value in changes.items():
                setattr(row, key, value)
            row.updated_at = self._clock()
            session.add(row)
            session.commit()
            session.refresh(row)
            task = _to_task(row)
        logger.info("Updated task %d (%s)", task_id, ", ".join(sorted(changes)) or "no fields")
        return task

    def delete(self, task_id: int) -> Task:
        with Session(self._engine) as session:
            row = self._get_row(session, task_id)
            removed = _to_task(row)
            session.delete(row)
            session.commit()
        logger.info("Deleted task %d", task_id)
        return removed

    def clear(self) -> None:
        with Session(self._engine) as session:
            for row in session.exec(select(TaskRow)).all():
                session.delete(row)
            session.commit()

    @staticmethod
    def _get_row(session: Session, task_id: int) -> TaskRow:
        # SQLite integers are signed 64-bit; larger ids cannot exist.
        if not SQLITE_MIN_ID <= task_id <= SQLITE_MAX_ID:
            raise NotFoundError(task_id)
        row = session.get(TaskRow, task_id)
        if row is None:
            raise NotFoundError(task_id)
        return row
