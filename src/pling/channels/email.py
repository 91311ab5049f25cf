"""
Email channel — send the notification as a plain-text mail over SMTP.

Connects to the relay with implicit TLS, authenticates with username and
password and sends one message with a fixed sender, recipient and subject.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from collections.abc import Mapping
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import ClassVar

from pydantic import Field

from pling.channel import Channel
from pling.env import environ, require
from pling.errors import ChannelError
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)

SMTPS_PORT = 465
SMTP_TIMEOUT = 30.0


class Email(Channel):
    """SMTP email notification channel."""

    name: ClassVar[str] = "Email"

    server: str
    port: int | None = Field(default=None, gt=0, lt=65536)

    username: str
    password: str = Field(repr=False)

    from_: str = Field(alias="from")
    to: str
    subject: str

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Email | None:
        """Read the ``EMAIL_*`` variables. ``EMAIL_PORT`` is optional."""
        env = environ(env)
        values = require(
            env,
            "EMAIL_SERVER",
            "EMAIL_USERNAME",
            "EMAIL_PASSWORD",
            "EMAIL_FROM",
            "EMAIL_TO",
            "EMAIL_SUBJECT",
        )
        if values is None:
            return None
        server, username, password, from_, to, subject = values

        port: int | None
        try:
            port = int(env["EMAIL_PORT"])
        except (KeyError, ValueError):
            port = None
        if port is not None and not 0 < port < 65536:
            port = None

        return cls(
            server=server,
            port=port,
            username=username,
            password=password,
            from_=from_,
            to=to,
            subject=subject,
        )

    def build_message(self, text: str) -> MIMEText:
        for header, addr in (("From", self.from_), ("To", self.to)):
            _, parsed = parseaddr(addr)
            if "@" not in parsed:
                raise ChannelError(self.name, f"invalid {header} address {addr!r}")

        msg = MIMEText(text, "plain", "utf-8")
        msg["Subject"] = self.subject
        msg["From"] = self.from_
        msg["To"] = self.to
        return msg

    def send(self, text: str, transport: HttpTransport | None = None) -> None:
        msg = self.build_message(text)
        port = self.port or SMTPS_PORT
        logger.debug("Sending email notification via %s:%d", self.server, port)
        try:
            self._smtp_send(msg, port)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Email delivery via %s failed: %s", self.server, exc)
            raise ChannelError(self.name, str(exc)) from exc

    async def send_async(
        self, text: str, transport: AsyncHttpTransport | None = None
    ) -> None:
        if transport is not None:
            self._check_transport(transport, AsyncHttpTransport)
        # Run SMTP in executor to avoid blocking the event loop
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.send, text)

    def _smtp_send(self, msg: MIMEText, port: int) -> None:
        with smtplib.SMTP_SSL(self.server, port, timeout=SMTP_TIMEOUT) as server:
            server.login(self.username, self.password)
            server.send_message(msg)
