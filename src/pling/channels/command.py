"""
Command channel — run a local program with the notification as last argument.

This can do everything your local system can do. The process is always run
synchronously, also from ``send_async()``.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from typing import ClassVar

from pydantic import Field

from pling.channel import Channel
from pling.env import environ
from pling.errors import CommandError, CommandErrorKind
from pling.transport import HttpTransport

logger = logging.getLogger(__name__)


class Command(Channel):
    """Execute ``program *arguments text`` on every notification."""

    name: ClassVar[str] = "Command"

    program: str
    arguments: list[str] = Field(default_factory=list)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Command | None:
        """Read ``PLING_COMMAND_PROGRAM`` and ``PLING_COMMAND_ARGS``.

        The arguments are split on whitespace; unset means no arguments.
        """
        env = environ(env)
        program = env.get("PLING_COMMAND_PROGRAM")
        if program is None:
            return None
        arguments = env.get("PLING_COMMAND_ARGS", "").split()
        return cls(program=program, arguments=arguments)

    def build_argv(self, text: str) -> list[str]:
        return [self.program, *self.arguments, text]

    def send(self, text: str, transport: HttpTransport | None = None) -> None:
        argv = self.build_argv(text)
        logger.debug("Running notification command %s", self.program)
        try:
            result = subprocess.run(argv, capture_output=True, check=False)
        except (OSError, ValueError) as exc:
            raise CommandError(
                CommandErrorKind.SPAWN_FAILED,
                f"could not run {self.program!r}: {exc}",
            ) from exc

        if result.returncode != 0:
            logger.warning(
                "Notification command %s exited with status %d",
                self.program,
                result.returncode,
            )
            raise CommandError(
                CommandErrorKind.NON_SUCCESS_EXIT,
                f"Command exited unsuccessfully (status {result.returncode})",
                returncode=result.returncode,
            )
