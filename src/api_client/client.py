"""
HTTP client for the task API.

A single ``ApiClient`` owns the ``httpx.AsyncClient`` every call goes through.
It attaches the stored bearer token to outgoing requests and, when the API
answers 401, performs one silent token refresh and replays the original
request. Every failure leaves this module as an ``ApiError`` (or ``AuthError``
for an irrecoverable session) carrying a single human-readable message.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import ValidationError

from core.config import Settings, get_settings
from core.token_storage import FileTokenStorage, StorageError, TokenStorage
from schemas.auth import AuthPayload, AuthResponse
from services.exceptions import AuthError
from shared.api_errors import DEFAULT_ERROR_MESSAGE, ErrorCategory, parse_http_error

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "X-Requested-With": "XMLHttpRequest",
}

REFRESH_PATH = "/auth/refresh"
SESSION_EXPIRED_MESSAGE = "Session expired"
COOKIES_KEY = "cookies"

# Marker stored in httpx request extensions. Set before a refresh is awaited so a
# 401 on the replayed request is rejected instead of refreshing again.
RETRIED_EXTENSION = "task_client_retried"

SessionExpiredHandler = Callable[[str], Awaitable[None]]
RequestErrorHandler = Callable[[str], None]


class ApiError(Exception):
    """
    Raised when an API call fails.

    Attributes:
        message: Server-supplied message, or the operation's default.
        status_code: HTTP status, or None when no response was received.
        category: Semantic category of the failure.
        server_message: The server's own message, if it sent one.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        category: ErrorCategory = "internal",
        server_message: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.category = category
        self.server_message = server_message
        super().__init__(message)


class ApiClient:
    """
    Shared HTTP client with bearer-token injection and single-shot refresh.

    Concurrent requests that hit 401 at the same time share one in-flight
    refresh instead of each starting their own.
    """

    def __init__(
        self,
        base_url: str,
        storage: TokenStorage,
        *,
        token_key: str = "accessToken",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._storage = storage
        self._token_key = token_key
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=DEFAULT_HEADERS,
            timeout=timeout,
            transport=transport,
        )
        self._refresh_task: asyncio.Task[AuthPayload] | None = None
        self._expired_refresh: asyncio.Task[AuthPayload] | None = None
        self._on_session_expired: SessionExpiredHandler | None = None
        self._on_request_error: RequestErrorHandler | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        storage: TokenStorage | None = None,
    ) -> "ApiClient":
        """Build a client from settings, defaulting to file-backed storage."""
        settings = settings or get_settings()
        return cls(
            base_url=settings.api_url,
            storage=storage or FileTokenStorage(settings.token_store_path),
            token_key=settings.token_key,
            timeout=settings.api_timeout,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    @property
    def storage(self) -> TokenStorage:
        """The durable storage holding the token."""
        return self._storage

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookie jar; holds the refresh cookie set by login/register."""
        return self._http.cookies

    def set_session_expired_handler(self, handler: SessionExpiredHandler | None) -> None:
        """Register the callback invoked once when a silent refresh fails."""
        self._on_session_expired = handler

    def set_request_error_handler(self, handler: RequestErrorHandler | None) -> None:
        """Register the callback that receives the message of every rejected request."""
        self._on_request_error = handler

    # ---- token storage ----------------------------------------------------

    def get_token(self) -> str | None:
        """Read the persisted access token."""
        try:
            token = self._storage.get(self._token_key)
        except StorageError as e:
            logger.error("Request interceptor error: %s", e)
            raise ApiError(DEFAULT_ERROR_MESSAGE) from e
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str) -> None:
        """Persist a new access token."""
        self._storage.set(self._token_key, token)

    def clear_token(self) -> None:
        """Remove the persisted access token."""
        self._storage.remove(self._token_key)

    def load_cookies(self) -> None:
        """Restore the cookie jar saved by ``save_cookies``."""
        saved = self._storage.get(COOKIES_KEY)
        if isinstance(saved, dict):
            self._http.cookies.update(saved)

    def save_cookies(self) -> None:
        """Persist the cookie jar so a later process can refresh the session."""
        jar = {cookie.name: cookie.value for cookie in self._http.cookies.jar}
        self._storage.set(COOKIES_KEY, jar)

    def _auth_headers(self) -> dict[str, str]:
        """Authorization header for the stored token (empty if none)."""
        token = self.get_token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    # ---- requests ---------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        default_message: str = DEFAULT_ERROR_MESSAGE,
        refresh_on_401: bool = True,
    ) -> httpx.Response:
        """
        Send a request and return the successful response.

        A 401 on a first attempt triggers one silent refresh followed by one
        replay of the same request with the new token. Any other failure, or a
        401 on the replay, raises ``ApiError``. If the refresh itself fails the
        session-expired handler runs and ``AuthError`` is raised.

        Args:
            method: HTTP method.
            path: Path relative to the API base URL.
            params: Query parameters.
            json: JSON body.
            default_message: Message used when the server does not supply one.
            refresh_on_401: False for calls that must never trigger a refresh
                (the refresh and logout calls themselves).
        """
        headers = self._auth_headers()
        sent_token = headers.get("Authorization")
        request = self._http.build_request(
            method, path, params=params, json=json, headers=headers,
        )
        if not refresh_on_401:
            request.extensions[RETRIED_EXTENSION] = True

        response = await self._send(request, default_message)
        if response.is_success:
            return response

        if response.status_code == 401 and not request.extensions.get(RETRIED_EXTENSION):
            request.extensions[RETRIED_EXTENSION] = True
            token = await self._refresh_after_unauthorized(sent_token)
            request.headers["Authorization"] = f"Bearer {token}"
            logger.debug("Replaying %s %s with refreshed token", request.method, request.url)
            response = await self._send(request, default_message)
            if response.is_success:
                return response

        raise self._rejection(response, default_message)

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a POST request."""
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a PUT request."""
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a DELETE request."""
        return await self.request("DELETE", path, **kwargs)

    async def _send(self, request: httpx.Request, default_message: str) -> httpx.Response:
        logger.debug("%s %s", request.method, request.url)
        try:
            return await self._http.send(request)
        except httpx.RequestError as e:
            logger.error("Request error for %s %s: %s", request.method, request.url, e)
            self._report_error(default_message)
            raise ApiError(default_message, category="network") from e

    def _rejection(self, response: httpx.Response, default_message: str) -> ApiError:
        parsed = parse_http_error(response, default_message)
        logger.error(
            "Response error: %s %s -> %s (%s)",
            response.request.method,
            response.request.url,
            response.status_code,
            parsed.message,
        )
        self._report_error(parsed.message)
        return ApiError(
            parsed.message,
            status_code=response.status_code,
            category=parsed.category,
            server_message=parsed.server_message,
        )

    def _report_error(self, message: str) -> None:
        if self._on_request_error is not None:
            self._on_request_error(message)

    # ---- refresh ----------------------------------------------------------

    async def refresh_session(self) -> AuthPayload:
        """
        Exchange the refresh cookie for a new access token.

        Joins the in-flight refresh if one is running. On success the new token
        is persisted. Raises ``AuthError`` on failure; the stored token is left
        for the caller to clear.
        """
        return await asyncio.shield(self._ensure_refresh_task())

    def _ensure_refresh_task(self) -> "asyncio.Task[AuthPayload]":
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh())
        return self._refresh_task

    async def _refresh(self) -> AuthPayload:
        try:
            response = await self.request(
                "POST",
                REFRESH_PATH,
                default_message=SESSION_EXPIRED_MESSAGE,
                refresh_on_401=False,
            )
            payload = AuthResponse.model_validate_json(response.content).data
            self.set_token(payload.access_token)
        except ApiError as e:
            logger.warning("Token refresh error: %s", e.message)
            raise AuthError(e.message) from e
        except ValidationError as e:
            logger.warning("Token refresh returned an invalid payload: %s", e)
            raise AuthError(SESSION_EXPIRED_MESSAGE) from e
        except StorageError as e:
            logger.warning("Failed to store refreshed token: %s", e)
            raise AuthError(SESSION_EXPIRED_MESSAGE) from e

        logger.info("Access token refreshed for user id=%s", payload.user.id)
        return payload

    async def _refresh_after_unauthorized(self, sent_authorization: str | None) -> str:
        """Return a usable token after a 401, refreshing at most once per rotation."""
        current = self.get_token()
        if current and sent_authorization and sent_authorization != f"Bearer {current}":
            # Another request already rotated the token since this one was sent.
            return current

        task = self._ensure_refresh_task()
        try:
            payload = await asyncio.shield(task)
        except AuthError as e:
            if self._expired_refresh is not task:
                self._expired_refresh = task
                await self._expire_session(e.message)
            raise
        return payload.access_token

    async def _expire_session(self, message: str) -> None:
        if self._on_session_expired is not None:
            await self._on_session_expired(message)
        else:
            try:
                self.clear_token()
            except StorageError as e:
                logger.warning("Failed to clear stored token: %s", e)
