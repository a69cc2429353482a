"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import respx

from api_client.client import ApiClient
from core.token_storage import MemoryTokenStorage

API_URL = "http://testserver/api"
TOKEN_KEY = "accessToken"


def make_user(user_id: int = 1, username: str = "alice") -> dict[str, Any]:
    """User record as the API returns it."""
    return {
        "id": user_id,
        "username": username,
        "email": f"{username}@example.com",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }


def make_task(task_id: int = 1, **overrides: Any) -> dict[str, Any]:
    """Task record as the API returns it."""
    task = {
        "id": task_id,
        "title": f"Task {task_id}",
        "description": "Something to do",
        "completed": False,
        "priority": "medium",
        "dueDate": "2024-02-01T12:00:00Z",
        "userId": 1,
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    task.update(overrides)
    return task


def auth_body(token: str, user: dict[str, Any] | None = None) -> dict[str, Any]:
    """Body returned by login, register and refresh."""
    return {"status": "success", "data": {"user": user or make_user(), "accessToken": token}}


def task_body(task: dict[str, Any]) -> dict[str, Any]:
    """Body returned by single-task endpoints."""
    return {"status": "success", "data": {"task": task}}


def task_list_body(tasks: list[dict[str, Any]], total: int | None = None) -> dict[str, Any]:
    """Body returned by GET /tasks."""
    return {
        "status": "success",
        "data": {
            "tasks": tasks,
            "pagination": {
                "total": len(tasks) if total is None else total,
                "page": 1,
                "totalPages": 1,
            },
        },
    }


@pytest.fixture
def storage() -> MemoryTokenStorage:
    """Empty in-memory session storage."""
    return MemoryTokenStorage()


@pytest.fixture
async def api_client(storage: MemoryTokenStorage) -> AsyncGenerator[ApiClient]:
    """API client pointed at the mocked test server."""
    client = ApiClient(API_URL, storage, token_key=TOKEN_KEY)
    yield client
    await client.aclose()


@pytest.fixture
def mock_api() -> Generator[respx.MockRouter]:
    """Context manager for mocking API responses."""
    with respx.mock(base_url=API_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def sample_user() -> dict[str, Any]:
    """Sample user response data."""
    return make_user()


@pytest.fixture
def sample_task() -> dict[str, Any]:
    """Sample task response data."""
    return make_task()
