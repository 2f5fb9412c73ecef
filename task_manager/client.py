# task_manager/client.py
"""Typed HTTP client for the task API.

Every failure surfaces as a ``TaskClientError`` subclass so callers can tell
"the server rejected the input" (``TaskRejectedError``) apart from "the
server could not be reached" (``TaskConnectionError``).
"""

import logging
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Union

import httpx
from pydantic import BaseModel, TypeAdapter

from task_manager.models import Task, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
TASKS_PATH = "/api/tasks"

STATUS_ORDER = {
    TaskStatus.TODO: 0,
    TaskStatus.IN_PROGRESS: 1,
    TaskStatus.DONE: 2,
}

Payload = Union[Mapping[str, Any], BaseModel]


class TaskClientError(Exception):
    """Base class for client-side failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TaskRejectedError(TaskClientError):
    """The server refused the request body or path (HTTP 400)."""


class TaskNotFoundError(TaskClientError):
    """The referenced task does not exist (HTTP 404)."""


class TaskServerError(TaskClientError):
    """Any other non-success response."""


class TaskConnectionError(TaskClientError):
    """The request never got a response (connect error, timeout, ...)."""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "error" in body:
        return str(body["error"])
    return response.reason_phrase


_JSON_OBJECT = TypeAdapter(dict[str, Any])


def _to_json(payload: Payload) -> Any:
    """Encode a payload for the wire; dates and enums become strings."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    try:
        return _JSON_OBJECT.dump_python(dict(payload), mode="json")
    except ValueError as exc:
        raise TaskClientError(f"Payload is not JSON serializable: {exc}") from exc


class TaskClient:
    """Client for the five task operations.

    Parameters
    ----------
    base_url : str
        Root URL of the API server.
    http : httpx.Client, optional
        Preconfigured client (for example a FastAPI ``TestClient``). When
        given, the caller owns it and :meth:`close` leaves it open.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout)

    def __enter__(self) -> "TaskClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    # -- operations -----------------------------------------------------------

    def list_tasks(self) -> list[Task]:
        data = self._request("GET", TASKS_PATH)
        return [Task.model_validate(item) for item in data]

    def get_task(self, task_id: int) -> Task:
        return Task.model_validate(self._request("GET", f"{TASKS_PATH}/{task_id}"))

    def create_task(self, fields: Payload) -> Task:
        return Task.model_validate(self._request("POST", TASKS_PATH, _to_json(fields)))

    def update_task(self, task_id: int, fields: Payload, *, partial: bool = False) -> Task:
        """Full replace via PUT, or a partial update via PATCH when *partial*."""
        method = "PATCH" if partial else "PUT"
        return Task.model_validate(
            self._request(method, f"{TASKS_PATH}/{task_id}", _to_json(fields))
        )

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"{TASKS_PATH}/{task_id}")

    # -- private helpers ------------------------------------------------------

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = self._http.request(method, path, json=json)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TaskConnectionError(f"Could not reach task API: {exc}") from exc

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            return response.json()

        message = _error_message(response)
        if response.status_code == 400:
            raise TaskRejectedError(message, response.status_code)
        if response.status_code == 404:
            raise TaskNotFoundError(message, response.status_code)
        logger.error("%s %s returned %d: %s", method, path, response.status_code, message)
        raise TaskServerError(message, response.status_code)


def sort_tasks(tasks: Iterable[Task], by: str = "none") -> list[Task]:
    """Order tasks for display.

    ``"status"`` groups TODO, IN_PROGRESS, DONE; ``"dueDate"`` puts the
    earliest deadline first and tasks without one last. Both sorts are
    stable, and ``"none"`` keeps the server's order.
    """
    if by == "none":
        return list(tasks)
    if by == "status":
        return sorted(tasks, key=lambda t: STATUS_ORDER[t.status])
    if by == "dueDate":
        return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or date.min))
    raise ValueError(f"Unknown sort key {by!r}; expected 'none', 'status' or 'dueDate'")
