"""Shared exceptions for service layer operations."""


class ClientError(Exception):
    """
    Base exception for failures surfaced to callers of the client.

    Always carries exactly one human-readable message: the server's message when
    it supplied one, otherwise a default for the operation that failed.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthError(ClientError):
    """Raised when login, registration, token refresh or logout fails."""


class ResourceError(ClientError):
    """Raised when a task operation fails."""
