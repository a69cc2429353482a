"""Pydantic schemas for task endpoints."""
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from schemas.base import CamelModel

Priority = Literal["low", "medium", "high"]
SortOrder = Literal["ASC", "DESC"]

DEFAULT_SORT_BY = "createdAt"
DEFAULT_ORDER: SortOrder = "DESC"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


class Task(CamelModel):
    """A task as returned by the API. The server owns the authoritative record."""

    id: int
    title: str
    description: str | None = None
    completed: bool
    priority: Priority
    due_date: datetime | None = None
    user_id: int
    created_at: datetime
    updated_at: datetime


class TaskCreate(CamelModel):
    """Schema for creating a new task."""

    title: str = Field(min_length=1)
    description: str | None = None
    priority: Priority = "medium"
    due_date: datetime | None = None


class TaskUpdate(CamelModel):
    """
    Schema for updating an existing task.

    Only fields that were explicitly set are sent, so omitting a field leaves it
    unchanged while setting it to None clears it on the server.
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    due_date: datetime | None = None


class TaskFilters(CamelModel):
    """
    Query descriptor for GET /tasks.

    Rebuilt per request, never persisted. Fields left as None are dropped from
    the query string entirely; the API treats an absent parameter differently
    from an empty one, so empty strings are sent as-is.
    """

    search: str | None = None
    completed: str | None = None
    priority: str | None = None
    sort_by: str | None = None
    order: SortOrder | None = None
    page: int | None = Field(default=None, ge=1)
    limit: int | None = Field(default=None, ge=1)

    @field_validator("completed", mode="before")
    @classmethod
    def stringify_completed(cls, v: Any) -> Any:
        """The API expects 'true'/'false' strings; accept real booleans too."""
        if isinstance(v, bool):
            return "true" if v else "false"
        return v

    def with_defaults(self) -> "TaskFilters":
        """Fill in the default sort, order and paging for unset fields."""
        return self.model_copy(
            update={
                "sort_by": self.sort_by if self.sort_by is not None else DEFAULT_SORT_BY,
                "order": self.order if self.order is not None else DEFAULT_ORDER,
                "page": self.page if self.page is not None else DEFAULT_PAGE,
                "limit": self.limit if self.limit is not None else DEFAULT_LIMIT,
            },
        )

    def to_params(self) -> dict[str, Any]:
        """Query parameters with every unset (None) field stripped."""
        return self.to_api(exclude_none=True)


class Pagination(CamelModel):
    """Paging metadata for task lists."""

    total: int
    page: int
    total_pages: int


class TaskList(CamelModel):
    """The ``data`` object of a task list response."""

    tasks: list[Task]
    pagination: Pagination


class TaskListResponse(BaseModel):
    """Envelope returned by GET /tasks."""

    status: str
    data: TaskList


class TaskData(BaseModel):
    """The ``data`` object of a single-task response."""

    task: Task


class TaskResponse(BaseModel):
    """Envelope returned by GET/POST/PUT on a single task."""

    status: str
    data: TaskData
