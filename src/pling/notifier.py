"""
Notifier — the closed set of channel configs and dispatch over it.

``CHANNELS`` is the ordered registry of channel implementations. Discovery
walks it in order, so the result of ``discover_all()`` is deterministic:
Command, Desktop, Email, Matrix, Slack, Telegram, Webhook.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Union

from pling.channel import Channel
from pling.channels.command import Command
from pling.channels.desktop import Desktop
from pling.channels.email import Email
from pling.channels.matrix import Matrix
from pling.channels.slack import Slack
from pling.channels.telegram import Telegram
from pling.channels.webhook import Webhook
from pling.env import environ
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)

Notifier = Union[Command, Desktop, Email, Matrix, Slack, Telegram, Webhook]

CHANNELS: tuple[type[Channel], ...] = (
    Command,
    Desktop,
    Email,
    Matrix,
    Slack,
    Telegram,
    Webhook,
)


def channel_by_name(name: str, channels: Iterable[type[Channel]] = CHANNELS) -> type[Channel]:
    """Look up a channel class by its tag, e.g. ``"Telegram"``."""
    for channel in channels:
        if channel.name == name:
            return channel
    raise KeyError(name)


def discover_all(
    env: Mapping[str, str] | None = None,
    channels: Iterable[type[Channel]] = CHANNELS,
) -> list[Notifier]:
    """Build every channel that is fully configured in ``env``.

    ``channels`` restricts discovery to the enabled implementations; order is
    preserved. Unconfigured channels are skipped silently.
    """
    env = environ(env)
    result: list[Notifier] = []
    for channel in channels:
        notifier = channel.from_env(env)
        if notifier is None:
            logger.debug("%s is not configured", channel.name)
            continue
        logger.debug("Discovered %s from environment", channel.name)
        result.append(notifier)  # type: ignore[arg-type]
    return result


def send_blocking(
    notifier: Notifier, text: str, transport: HttpTransport | None = None
) -> None:
    """Send ``text`` through ``notifier`` with the blocking transport."""
    logger.debug("Sending %s notification", notifier.name)
    notifier.send(text, transport)


async def send_async(
    notifier: Notifier, text: str, transport: AsyncHttpTransport | None = None
) -> None:
    """Send ``text`` through ``notifier`` with the awaitable transport.

    Command and Desktop run their process synchronously.
    """
    logger.debug("Sending %s notification (async)", notifier.name)
    await notifier.send_async(text, transport)
