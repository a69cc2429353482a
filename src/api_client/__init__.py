"""HTTP client for the task API."""

from .client import ApiClient, ApiError

__all__ = ["ApiClient", "ApiError"]
