"""
Generic webhook channel — POST the raw notification text to a URL.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import ClassVar

import httpx
from pydantic import AnyUrl

from pling.channel import Channel
from pling.env import environ, parse_url
from pling.errors import ChannelError
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)

_PLAIN = {"Content-Type": "text/plain; charset=utf-8"}


class Webhook(Channel):
    """Generic webhook notification channel."""

    name: ClassVar[str] = "Webhook"

    url: AnyUrl

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Webhook | None:
        """Read ``WEBHOOK_URL``; None when unset or not a valid URL."""
        url = parse_url(environ(env).get("WEBHOOK_URL"))
        if url is None:
            return None
        return cls(url=url)

    def send(self, text: str, transport: HttpTransport | None = None) -> None:
        transport = self._blocking_transport(transport)
        try:
            transport.post(str(self.url), content=text, headers=_PLAIN)
        except httpx.HTTPError as exc:
            logger.warning("Webhook delivery failed to %s", self.url)
            raise ChannelError(self.name, str(exc)) from exc

    async def send_async(
        self, text: str, transport: AsyncHttpTransport | None = None
    ) -> None:
        transport = self._async_transport(transport)
        try:
            await transport.post(str(self.url), content=text, headers=_PLAIN)
        except httpx.HTTPError as exc:
            logger.warning("Webhook delivery failed to %s", self.url)
            raise ChannelError(self.name, str(exc)) from exc
