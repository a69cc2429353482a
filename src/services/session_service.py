"""
Session store: the client's belief about which user is logged in.

The store owns a single ``SessionState`` (user, loading, error) and the
persisted access token. Only its methods mutate either; callers read a
snapshot through ``state``.
"""
import logging
from dataclasses import dataclass, replace

from pydantic import ValidationError

from api_client.client import SESSION_EXPIRED_MESSAGE, ApiClient, ApiError
from core.token_storage import StorageError
from schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from schemas.user import User
from services.exceptions import AuthError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
REGISTER_PATH = "/auth/register"
LOGOUT_PATH = "/auth/logout"

LOGIN_ERROR_MESSAGE = "An error occurred during login"
REGISTER_ERROR_MESSAGE = "An error occurred during registration"
LOGOUT_ERROR_MESSAGE = "An error occurred during logout"


@dataclass(frozen=True)
class SessionState:
    """
    Snapshot of the session.

    ``loading`` stays True until the startup ``check_auth`` finishes. ``error``
    holds only the most recent failure message.
    """

    user: User | None = None
    loading: bool = True
    error: str | None = None


class SessionStore:
    """Login, registration, logout and startup session check."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._state = SessionState()
        client.set_session_expired_handler(self.expire_session)
        client.set_request_error_handler(self.set_error)

    @property
    def state(self) -> SessionState:
        """Current session snapshot."""
        return self._state

    @property
    def user(self) -> User | None:
        return self._state.user

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def is_authenticated(self) -> bool:
        """True while a user is held in memory."""
        return self._state.user is not None

    def set_error(self, message: str | None) -> None:
        """Replace (or clear) the current error message."""
        self._update(error=message)

    def _update(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)

    async def login(self, email: str, password: str) -> User:
        """
        Log in with email and password.

        Persists the returned access token and sets the current user.

        Raises:
            AuthError: With the server's message or a default on failure.
        """
        body = LoginRequest(email=email, password=password).model_dump()
        return await self._authenticate(LOGIN_PATH, body, LOGIN_ERROR_MESSAGE, "Login")

    async def register(self, username: str, email: str, password: str) -> User:
        """
        Create an account and log in as the new user.

        Raises:
            AuthError: With the server's message or a default on failure.
        """
        body = RegisterRequest(username=username, email=email, password=password).model_dump()
        return await self._authenticate(
            REGISTER_PATH, body, REGISTER_ERROR_MESSAGE, "Registration",
        )

    async def _authenticate(
        self,
        path: str,
        body: dict[str, str],
        default_message: str,
        action: str,
    ) -> User:
        self._update(error=None)
        try:
            # A 401 here means bad credentials, not an expired token.
            response = await self._client.post(
                path,
                json=body,
                default_message=default_message,
                refresh_on_401=False,
            )
            payload = AuthResponse.model_validate_json(response.content).data
            self._client.set_token(payload.access_token)
        except ApiError as e:
            logger.error("%s error: %s", action, e.message)
            self._update(error=e.message)
            raise AuthError(e.message) from e
        except (ValidationError, StorageError) as e:
            logger.error("%s error: %s", action, e)
            self._update(error=default_message)
            raise AuthError(default_message) from e

        self._update(user=payload.user)
        logger.info("%s succeeded for user id=%s", action, payload.user.id)
        return payload.user

    async def logout(self) -> None:
        """
        End the session.

        The server call is best-effort: its failure is recorded in ``error``
        but the local token and user are always cleared.
        """
        try:
            await self._client.post(
                LOGOUT_PATH,
                default_message=LOGOUT_ERROR_MESSAGE,
                refresh_on_401=False,
            )
        except ApiError as e:
            logger.warning("Logout error: %s", e.message)
            self._update(error=e.message)
        finally:
            self._clear_local_session()

    async def check_auth(self) -> None:
        """
        Restore the session at startup.

        Without a stored token the session stays empty. With one, a silent
        refresh repopulates the user and replaces the token; on failure the
        token and any held user are discarded. Never raises; failures land in ``error``.
        """
        try:
            if not self._client.get_token():
                return
            payload = await self._client.refresh_session()
            self._update(user=payload.user)
            logger.info("Session restored for user id=%s", payload.user.id)
        except (ApiError, AuthError) as e:
            logger.warning("Auth check error: %s", e.message)
            self._update(error=e.message or SESSION_EXPIRED_MESSAGE)
            self._clear_local_session()
        finally:
            self._update(loading=False)

    async def expire_session(self, message: str) -> None:
        """
        Tear down a session whose token could not be refreshed.

        Called by the API client when a silent refresh fails. The refresh
        failure's message replaces any error the logout produced.
        """
        logger.info("Session expired: %s", message)
        await self.logout()
        self._update(error=message)

    def _clear_local_session(self) -> None:
        self._clear_stored_token()
        self._update(user=None)

    def _clear_stored_token(self) -> None:
        try:
            self._client.clear_token()
        except StorageError as e:
            logger.warning("Failed to clear stored token: %s", e)
            self._update(error=str(e))
