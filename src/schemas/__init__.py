"""Pydantic schemas for API payloads."""
from schemas.auth import AuthPayload, AuthResponse, LoginRequest, MessageResponse, RegisterRequest
from schemas.task import (
    Pagination,
    Priority,
    SortOrder,
    Task,
    TaskCreate,
    TaskFilters,
    TaskList,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from schemas.user import User

__all__ = [
    "AuthPayload",
    "AuthResponse",
    "LoginRequest",
    "MessageResponse",
    "Pagination",
    "Priority",
    "RegisterRequest",
    "SortOrder",
    "Task",
    "TaskCreate",
    "TaskFilters",
    "TaskList",
    "TaskListResponse",
    "TaskResponse",
    "TaskUpdate",
    "User",
]
