"""Pydantic schema for the authenticated user."""
from datetime import datetime

from pydantic import ConfigDict, Field

from schemas.base import CamelModel


class User(CamelModel):
    """Read-only copy of the backend's user record."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: datetime = Field(description="Last modification time on the server")
