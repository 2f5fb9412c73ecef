# task_manager/database.py
"""SQLModel table and engine factory for the relational task store."""

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Field, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from task_manager.models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, TaskStatus

logger = logging.getLogger(__name__)

DB_PATH = Path(__file__).parent / "data.db"
DEFAULT_DATABASE_URL = f"sqlite:///{DB_PATH}"

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class TaskRow(SQLModel, table=True):
    """Task database table.

    AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again.
    """
    __tablename__ = "task"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus = Field(default=TaskStatus.TODO)
    due_date: Optional[date] = Field(default=None)
    created_at: datetime
    updated_at: datetime


def build_engine(url: Optional[str] = None) -> Engine:
    """Create an engine for *url*, falling back to ``DATABASE_URL``.

    SQLite connections are shared with FastAPI's threadpool, and in-memory
    databases are pinned to a single connection so every session sees the
    same data.
    """
    url = url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=False, **kwargs)
    logger.info("Using database %r", engine.url)
    return engine


def create_db_and_tables(engine: Engine) -> None:
    """Create all tables from SQLModel metadata."""
    SQLModel.metadata.create_all(engine)
