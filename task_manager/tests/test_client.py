"""Tests for the typed task API client."""

from datetime import date, datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from task_manager.client import (
    TaskClient,
    TaskConnectionError,
    TaskNotFoundError,
    TaskRejectedError,
    TaskServerError,
    sort_tasks,
)
from task_manager.main import create_app
from task_manager.models import Task, TaskCreate, TaskStatus


@pytest.fixture(name="api")
def api_fixture(client: TestClient):
    """A TaskClient talking to the app through the test client."""
    return TaskClient(http=client)


def _offline_client() -> TaskClient:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    http = httpx.Client(base_url="http://tasks.invalid", transport=httpx.MockTransport(refuse))
    return TaskClient(http=http)


def _task(task_id: int, status: str = "TODO", due: str | None = None) -> Task:
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return Task(
        id=task_id,
        title=f"task {task_id}",
        status=status,
        due_date=due,
        created_at=now,
        updated_at=now,
    )


class TestOperations:
    def test_create_and_get(self, api):
        created = api.create_task({"title": "Buy milk", "dueDate": "2026-03-01"})
        assert created.status == TaskStatus.TODO
        assert created.due_date == date(2026, 3, 1)
        assert api.get_task(created.id) == created

    def test_create_with_date_values(self, api):
        created = api.create_task(
            {"title": "Dated", "dueDate": date(2026, 3, 1), "status": TaskStatus.DONE}
        )
        assert created.due_date == date(2026, 3, 1)
        assert created.status == TaskStatus.DONE

        patched = api.update_task(created.id, {"dueDate": date(2026, 4, 1)}, partial=True)
        assert patched.due_date == date(2026, 4, 1)

    def test_create_from_model(self, api):
        created = api.create_task(TaskCreate(title="From model", status=TaskStatus.DONE))
        assert created.title == "From model"
        assert created.status == TaskStatus.DONE

    def test_list_tasks(self, api):
        for title in ("A", "B", "C"):
            api.create_task({"title": title})
        assert [t.title for t in api.list_tasks()] == ["A", "B", "C"]

    def test_full_and_partial_update(self, api):
        task = api.create_task({"title": "x", "description": "d"})

        patched = api.update_task(task.id, {"status": "DONE"}, partial=True)
        assert patched.description == "d"
        assert patched.status == TaskStatus.DONE

        replaced = api.update_task(task.id, {"title": "y"})
        assert replaced.title == "y"
        assert replaced.description is None
        assert replaced.status == TaskStatus.TODO

    def test_delete(self, api):
        task = api.create_task({"title": "x"})
        assert api.delete_task(task.id) is None
        with pytest.raises(TaskNotFoundError):
            api.get_task(task.id)


class TestErrors:
    def test_rejected_input(self, api):
        with pytest.raises(TaskRejectedError) as exc_info:
            api.create_task({"title": "   "})
        assert exc_info.value.status_code == 400
        assert exc_info.value.message.startswith("title:")

    def test_not_found(self, api):
        with pytest.raises(TaskNotFoundError) as exc_info:
            api.delete_task(999)
        assert exc_info.value.message == "Task 999 not found"

    def test_server_error(self):
        def explode(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "Internal server error"})

        http = httpx.Client(base_url="http://tasks.test", transport=httpx.MockTransport(explode))
        with pytest.raises(TaskServerError) as exc_info:
            TaskClient(http=http).list_tasks()
        assert exc_info.value.status_code == 500

    def test_network_failure_is_not_a_rejection(self):
        api = _offline_client()
        with pytest.raises(TaskConnectionError) as exc_info:
            api.create_task({"title": "x"})
        assert not isinstance(exc_info.value, TaskRejectedError)
        assert exc_info.value.status_code is None

    def test_closes_only_owned_http_client(self):
        app_client = TestClient(create_app())
        with TaskClient(http=app_client) as api:
            api.list_tasks()
        assert not app_client.is_closed


class TestSortTasks:
    def test_none_keeps_order(self):
        tasks = [_task(3), _task(1), _task(2)]
        assert [t.id for t in sort_tasks(tasks)] == [3, 1, 2]

    def test_by_status(self):
        tasks = [_task(1, "DONE"), _task(2, "TODO"), _task(3, "IN_PROGRESS"), _task(4, "TODO")]
        assert [t.id for t in sort_tasks(tasks, "status")] == [2, 4, 3, 1]

    def test_by_due_date_puts_undated_last(self):
        tasks = [
            _task(1),
            _task(2, due="2026-05-01"),
            _task(3, due="2025-01-01"),
            _task(4),
        ]
        assert [t.id for t in sort_tasks(tasks, "dueDate")] == [3, 2, 1, 4]

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            sort_tasks([], "priority")
