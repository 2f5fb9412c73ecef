# task_manager/routes/tasks.py
"""CRUD endpoints for tasks.

Handlers only delegate to the store bound to the application; validation,
defaults and id assignment live in the store, and store errors are turned
into HTTP responses by the handlers registered in ``task_manager.main``.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response

from task_manager.models import Task, TaskCreate, TaskUpdate
from task_manager.store import TaskStore

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _documented_body(model) -> dict:
    """OpenAPI request body showing *model*. The store still does the validating."""
    schema = model.model_json_schema(by_alias=True, ref_template="#/components/schemas/{model}")
    schema.pop("$defs", None)
    return {"requestBody": {"content": {"application/json": {"schema": schema}}, "required": True}}


CREATE_BODY = _documented_body(TaskCreate)
UPDATE_BODY = _documented_body(TaskUpdate)


def get_store(request: Request) -> TaskStore:
    """Return the store bound to the running application."""
    return request.app.state.store


@router.get("")
@router.get("/", include_in_schema=False)
def list_tasks(store: TaskStore = Depends(get_store)) -> list[Task]:
    """List all tasks in creation order."""
    return store.list()


@router.get("/{task_id}")
def get_task(task_id: int, store: TaskStore = Depends(get_store)) -> Task:
    """Get a single task by ID."""
    return store.get(task_id)


@router.post("", status_code=201, openapi_extra=CREATE_BODY)
@router.post("/", status_code=201, include_in_schema=False)
def create_task(
    response: Response,
    payload: Any = Body(...),
    store: TaskStore = Depends(get_store),
) -> Task:
    """Create a new task. Only the title is required."""
    task = store.create(payload)
    response.headers["Location"] = f"{router.prefix}/{task.id}"
    return task


@router.put("/{task_id}", openapi_extra=CREATE_BODY)
def replace_task(
    task_id: int,
    payload: Any = Body(...),
    store: TaskStore = Depends(get_store),
) -> Task:
    """Overwrite every mutable field; omitted fields fall back to their defaults."""
    return store.update(task_id, payload)


@router.patch("/{task_id}", openapi_extra=UPDATE_BODY)
def patch_task(
    task_id: int,
    payload: Any = Body(...),
    store: TaskStore = Depends(get_store),
) -> Task:
    """Update an existing task. Only provided fields are changed."""
    return store.update(task_id, payload, partial=True)


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: int, store: TaskStore = Depends(get_store)) -> None:
    """Delete a task by ID."""
    store.delete(task_id)
