"""
pling — send a plain-text notification through whichever channels are configured.

Channels are discovered from environment variables, loaded from a YAML/JSON
document, or built directly, and then sent to with a blocking or awaitable
HTTP transport.
"""

__version__ = "0.1.0"

from pling.channel import Channel
from pling.channels.command import Command
from pling.channels.desktop import Desktop
from pling.channels.email import Email
from pling.channels.matrix import Matrix
from pling.channels.slack import Slack
from pling.channels.telegram import ParseMode, TargetChat, Telegram
from pling.channels.webhook import Webhook
from pling.dispatch import DeliveryResult, Dispatcher
from pling.errors import (
    ChannelError,
    CommandError,
    CommandErrorKind,
    ConfigError,
    PlingError,
    UnknownParseMode,
    UnsupportedTransport,
)
from pling.notifier import CHANNELS, Notifier, discover_all, send_async, send_blocking
from pling.transport import AsyncHttpTransport, HttpTransport

__all__ = [
    "CHANNELS",
    "AsyncHttpTransport",
    "Channel",
    "ChannelError",
    "Command",
    "CommandError",
    "CommandErrorKind",
    "ConfigError",
    "DeliveryResult",
    "Desktop",
    "Dispatcher",
    "Email",
    "HttpTransport",
    "Matrix",
    "Notifier",
    "ParseMode",
    "PlingError",
    "Slack",
    "TargetChat",
    "Telegram",
    "UnknownParseMode",
    "UnsupportedTransport",
    "Webhook",
    "discover_all",
    "send_async",
    "send_blocking",
]
