"""
Slack channel — post to an incoming webhook URL.

See https://api.slack.com/messaging/webhooks
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import ClassVar

import httpx
from pydantic import AliasChoices, AnyUrl, Field

from pling.channel import Channel
from pling.env import environ, parse_url
from pling.errors import ChannelError
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)

_JSON = {"Content-Type": "application/json"}


def escape_quotes(text: str) -> str:
    """Escape ``"`` as ``\\"``. Nothing else is escaped."""
    return text.replace('"', '\\"')


def payload_to_json(text: str) -> str:
    return '{"text":"' + escape_quotes(text) + '"}'


class Slack(Channel):
    """Slack incoming webhook notification channel."""

    name: ClassVar[str] = "Slack"

    webhook: AnyUrl = Field(validation_alias=AliasChoices("webhook", "hook"))

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Slack | None:
        """Read ``SLACK_HOOK``, falling back to ``SLACK_WEBHOOK``."""
        env = environ(env)
        raw = env.get("SLACK_HOOK")
        if raw is None:
            raw = env.get("SLACK_WEBHOOK")
        webhook = parse_url(raw)
        if webhook is None:
            return None
        return cls(webhook=webhook)

    def send(self, text: str, transport: HttpTransport | None = None) -> None:
        transport = self._blocking_transport(transport)
        try:
            transport.post(str(self.webhook), content=payload_to_json(text), headers=_JSON)
        except httpx.HTTPError as exc:
            logger.warning("Slack delivery failed: %s", exc)
            raise ChannelError(self.name, str(exc)) from exc

    async def send_async(
        self, text: str, transport: AsyncHttpTransport | None = None
    ) -> None:
        transport = self._async_transport(transport)
        try:
            await transport.post(
                str(self.webhook), content=payload_to_json(text), headers=_JSON
            )
        except httpx.HTTPError as exc:
            logger.warning("Slack delivery failed: %s", exc)
            raise ChannelError(self.name, str(exc)) from exc
