"""Tests for client configuration."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import Settings

ENV_VARS = ("VITE_API_URL", "TASK_API_TIMEOUT", "TASK_TOKEN_STORE", "TASK_TOKEN_KEY", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of the settings under test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test__settings__defaults() -> None:
    """Defaults point at a local API and the home-directory session store."""
    settings = Settings(_env_file=None)

    assert settings.api_url == "http://localhost:8000/api"
    assert settings.api_timeout == 30.0
    assert settings.token_key == "accessToken"
    assert settings.log_level == "WARNING"
    assert settings.token_store_path == Path("~/.task_client/session.json").expanduser()


def test__settings__reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Values come from the shared frontend variable and client-specific ones."""
    monkeypatch.setenv("VITE_API_URL", "https://tasks.example.com/api")
    monkeypatch.setenv("TASK_API_TIMEOUT", "5")
    monkeypatch.setenv("TASK_TOKEN_KEY", "token")

    settings = Settings(_env_file=None)

    assert settings.api_url == "https://tasks.example.com/api"
    assert settings.api_timeout == 5.0
    assert settings.token_key == "token"


def test__settings__strips_trailing_slash() -> None:
    """Paths are joined onto the base URL, so a trailing slash is dropped."""
    settings = Settings(_env_file=None, VITE_API_URL="http://localhost:3000/api/")
    assert settings.api_url == "http://localhost:3000/api"


@pytest.mark.parametrize("url", ["localhost:8000/api", "ftp://example.com", "/api", ""])
def test__settings__rejects_non_http_url(url: str) -> None:
    """Only absolute http(s) URLs are accepted."""
    with pytest.raises(ValidationError, match="absolute http"):
        Settings(_env_file=None, VITE_API_URL=url)


@pytest.mark.parametrize("timeout", [0, -1])
def test__settings__rejects_non_positive_timeout(timeout: float) -> None:
    """A zero or negative timeout is a configuration error."""
    with pytest.raises(ValidationError, match="greater than zero"):
        Settings(_env_file=None, TASK_API_TIMEOUT=timeout)


def test__settings__expands_home_in_store_path(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """'~' in the session store path resolves to the home directory."""
    monkeypatch.setenv("HOME", str(tmp_path))

    settings = Settings(_env_file=None, TASK_TOKEN_STORE="~/sessions/me.json")

    assert settings.token_store_path == tmp_path / "sessions" / "me.json"


def test__settings__accepts_field_names() -> None:
    """Fields can also be set by name, as tests and embedding code do."""
    settings = Settings(_env_file=None, api_url="http://api.internal", api_timeout=2)
    assert settings.api_url == "http://api.internal"
    assert settings.api_timeout == 2.0
