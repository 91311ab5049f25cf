"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pling.transport import AsyncHttpTransport, HttpTransport


@pytest.fixture
def transport():
    """Blocking transport double that records ``post()`` calls."""
    return MagicMock(spec=HttpTransport)


@pytest.fixture
def async_transport():
    """Awaitable transport double that records ``post()`` calls."""
    mock = MagicMock(spec=AsyncHttpTransport)
    mock.post = AsyncMock()
    return mock


@pytest.fixture
def full_env():
    """Environment configuring every channel."""
    return {
        "PLING_COMMAND_PROGRAM": "echo",
        "PLING_COMMAND_ARGS": "-n hello",
        "PLING_DESKTOP_ENABLED": "1",
        "EMAIL_SERVER": "smtp.example.com",
        "EMAIL_USERNAME": "bot",
        "EMAIL_PASSWORD": "hunter2",
        "EMAIL_FROM": "bot@example.com",
        "EMAIL_TO": "me@example.com",
        "EMAIL_SUBJECT": "pling",
        "MATRIX_HOMESERVER": "https://matrix.example.org",
        "MATRIX_ROOM_ID": "!room:example.org",
        "MATRIX_ACCESS_TOKEN": "secret",
        "SLACK_HOOK": "https://hooks.slack.com/services/T/B/X",
        "TELEGRAM_BOT_TOKEN": "123:ABC",
        "TELEGRAM_TARGET_CHAT": "1234",
        "WEBHOOK_URL": "https://example.com/hook",
    }
