"""
Exceptions raised by pling.

Missing or unparsable configuration is not an error: discovery simply leaves
the channel out. Everything here is raised to the caller of a send or of an
explicit constructor.
"""

from __future__ import annotations

from enum import Enum


class PlingError(Exception):
    """Base class for all pling errors."""


class ChannelError(PlingError):
    """A channel could not deliver its notification."""

    def __init__(self, channel: str, message: str) -> None:
        self.channel = channel
        self.message = message
        super().__init__(f"Failed to send {channel} notification: {message}")


class CommandErrorKind(str, Enum):
    SPAWN_FAILED = "spawn_failed"
    NON_SUCCESS_EXIT = "non_success_exit"


class CommandError(ChannelError):
    """The notification command could not be started or exited unsuccessfully."""

    def __init__(
        self,
        kind: CommandErrorKind,
        message: str,
        *,
        returncode: int | None = None,
    ) -> None:
        self.kind = kind
        self.returncode = returncode
        super().__init__("Command", message)


class UnknownParseMode(PlingError, ValueError):
    """The text does not name a Telegram parse mode."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"unknown parse_mode: {value!r}")


class UnsupportedTransport(PlingError, TypeError):
    """A blocking send got an awaitable transport, or the other way round."""


class ConfigError(PlingError):
    """A notifier document could not be parsed."""
