"""
Shared API error parsing.

Every failed call is reduced to one human-readable message. The server's own
``message`` field wins; otherwise the caller's default for that operation is
used. The status code is also mapped to a semantic category so callers can
branch without re-inspecting the response.
"""

from dataclasses import dataclass
from typing import Any, Literal

import httpx

ErrorCategory = Literal[
    "auth",        # 401 - Invalid or expired token
    "forbidden",   # 403 - Access denied
    "not_found",   # 404 - Resource not found
    "validation",  # 400/422 - Validation error
    "conflict",    # 409 - Conflicting state (e.g. email already registered)
    "network",     # No response at all (connection refused, timeout, ...)
    "internal",    # 5xx or unexpected errors
]

DEFAULT_ERROR_MESSAGE = "Request failed"


@dataclass
class ParsedApiError:
    """Parsed API error with semantic category and message."""

    category: ErrorCategory
    message: str
    server_message: str | None = None


def categorize_status(status: int | None) -> ErrorCategory:  # noqa: PLR0911
    """Map an HTTP status code (or None for transport failures) to a category."""
    if status is None:
        return "network"
    if status == 401:
        return "auth"
    if status == 403:
        return "forbidden"
    if status == 404:
        return "not_found"
    if status == 409:
        return "conflict"
    if status in (400, 422):
        return "validation"
    return "internal"


def extract_server_message(response: httpx.Response | None) -> str | None:
    """
    Return the server-supplied ``message`` field of an error body, if any.

    The API reports failures as ``{"status": "error", "message": "..."}``.
    Non-JSON bodies, non-object JSON and blank messages all yield None.
    """
    if response is None:
        return None
    body = _safe_json(response)
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None


def parse_http_error(
    response: httpx.Response | None,
    default_message: str = DEFAULT_ERROR_MESSAGE,
) -> ParsedApiError:
    """
    Parse a failed response into category and message.

    Args:
        response: The non-2xx response, or None when no response was received.
        default_message: Message to use when the server did not supply one.

    Returns:
        ParsedApiError whose message is the server's message or the default.
    """
    server_message = extract_server_message(response)
    status = response.status_code if response is not None else None
    return ParsedApiError(
        category=categorize_status(status),
        message=server_message or default_message,
        server_message=server_message,
    )


def _safe_json(response: httpx.Response) -> Any:
    """Decode a JSON body, returning None when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None
