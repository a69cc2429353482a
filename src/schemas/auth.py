"""Pydantic schemas for authentication endpoints."""
from pydantic import BaseModel, Field

from schemas.base import CamelModel
from schemas.user import User


class LoginRequest(BaseModel):
    """Body of POST /auth/login."""

    email: str
    password: str


class RegisterRequest(BaseModel):
    """Body of POST /auth/register."""

    username: str
    email: str
    password: str


class AuthPayload(CamelModel):
    """The ``data`` object returned by login, register and refresh."""

    user: User
    access_token: str = Field(min_length=1)


class AuthResponse(BaseModel):
    """Envelope returned by login, register and refresh."""

    status: str
    data: AuthPayload


class MessageResponse(BaseModel):
    """Envelope for endpoints that only report a status message (logout, delete)."""

    status: str
    message: str | None = None
