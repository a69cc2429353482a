"""Service layer for task CRUD operations against the API."""
import logging
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from api_client.client import ApiClient, ApiError
from schemas.auth import MessageResponse
from schemas.task import (
    Task,
    TaskCreate,
    TaskFilters,
    TaskList,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from services.exceptions import ResourceError

logger = logging.getLogger(__name__)

TASKS_PATH = "/tasks"

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def _task_path(task_id: int) -> str:
    return f"{TASKS_PATH}/{task_id}"


def _parse(
    response: httpx.Response,
    model: type[ResponseT],
    default_message: str,
    action: str,
) -> ResponseT:
    """Validate a success body, failing with the operation's default message."""
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        logger.error("%s error: invalid response payload: %s", action, e)
        raise ResourceError(default_message) from e


class TaskService:
    """
    Typed wrappers over the /tasks endpoints.

    Each method returns the server's payload or raises ``ResourceError`` with
    the server's message (or a per-operation default). An ``AuthError`` from a
    failed silent refresh is not wrapped, so callers can send the user back to
    login.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_tasks(self, filters: TaskFilters | None = None) -> TaskList:
        """List tasks, passing the given filters through unchanged."""
        default_message = "Failed to fetch tasks"
        params = filters.to_params() if filters is not None else None
        try:
            response = await self._client.get(
                TASKS_PATH, params=params, default_message=default_message,
            )
        except ApiError as e:
            logger.error("Get tasks error: %s", e.message)
            raise ResourceError(e.message) from e
        return _parse(response, TaskListResponse, default_message, "Get tasks").data

    async def get_task(self, task_id: int) -> Task:
        """Fetch a single task by ID."""
        default_message = "Failed to fetch task"
        try:
            response = await self._client.get(
                _task_path(task_id), default_message=default_message,
            )
        except ApiError as e:
            logger.error("Get task error: %s", e.message)
            raise ResourceError(e.message) from e
        return _parse(response, TaskResponse, default_message, "Get task").data.task

    async def create_task(self, data: TaskCreate) -> Task:
        """Create a new task."""
        default_message = "Failed to create task"
        try:
            response = await self._client.post(
                TASKS_PATH,
                json=data.to_api(exclude_unset=True),
                default_message=default_message,
            )
        except ApiError as e:
            logger.error("Create task error: %s", e.message)
            raise ResourceError(e.message) from e
        return _parse(response, TaskResponse, default_message, "Create task").data.task

    async def update_task(self, task_id: int, data: TaskUpdate) -> Task:
        """Update the explicitly set fields of a task."""
        default_message = "Failed to update task"
        try:
            response = await self._client.put(
                _task_path(task_id),
                json=data.to_api(exclude_unset=True),
                default_message=default_message,
            )
        except ApiError as e:
            logger.error("Update task error: %s", e.message)
            raise ResourceError(e.message) from e
        return _parse(response, TaskResponse, default_message, "Update task").data.task

    async def delete_task(self, task_id: int) -> MessageResponse:
        """Delete a task."""
        default_message = "Failed to delete task"
        try:
            response = await self._client.delete(
                _task_path(task_id), default_message=default_message,
            )
        except ApiError as e:
            logger.error("Delete task error: %s", e.message)
            raise ResourceError(e.message) from e
        return _parse(response, MessageResponse, default_message, "Delete task")

    async def toggle_task_completion(self, task_id: int, completed: bool) -> Task:
        """Set a task's completion flag."""
        default_message = "Failed to update task completion status"
        try:
            response = await self._client.put(
                _task_path(task_id),
                json={"completed": completed},
                default_message=default_message,
            )
        except ApiError as e:
            logger.error("Toggle task completion error: %s", e.message)
            raise ResourceError(e.message) from e
        return _parse(
            response, TaskResponse, default_message, "Toggle task completion",
        ).data.task

    async def get_filtered_tasks(self, filters: TaskFilters | None = None) -> TaskList:
        """
        List tasks with filtering, sorting and pagination.

        Unset sort, order and paging fields take their defaults (createdAt,
        DESC, page 1, 10 per page). Every other unset filter is left out of the
        query string entirely.
        """
        default_message = "Failed to fetch filtered tasks"
        params = (filters or TaskFilters()).with_defaults().to_params()
        try:
            response = await self._client.get(
                TASKS_PATH, params=params, default_message=default_message,
            )
        except ApiError as e:
            logger.error("Get filtered tasks error: %s", e.message)
            raise ResourceError(e.message) from e
        return _parse(
            response, TaskListResponse, default_message, "Get filtered tasks",
        ).data
