"""
Telegram channel — send a message through the Bot API.

Also defines the two Telegram-specific value types: ``TargetChat`` (numeric
chat id or ``@username``) and ``ParseMode``.
"""

from __future__ import annotations

import logging
import re
import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

import httpx
from pydantic import ConfigDict, Field, field_serializer, field_validator

from pling.channel import Channel
from pling.env import environ, flag, require
from pling.errors import ChannelError, UnknownParseMode
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.telegram.org/bot{token}"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _as_chat_id(text: str) -> int | None:
    if not _INTEGER.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


@dataclass(frozen=True)
class TargetChat:
    """Unique identifier of the target chat, or username of the target channel.

    ``value`` is an ``int`` for chat ids and a ``str`` for usernames. Parsing
    is permissive: every string that is not a signed 64-bit integer is taken
    as a username verbatim, whether or not it starts with ``@``.
    """

    value: int | str

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, str)):
            raise TypeError(f"target chat must be int or str, got {type(self.value).__name__}")
        if isinstance(self.value, int) and not _INT64_MIN <= self.value <= _INT64_MAX:
            raise ValueError(f"chat id {self.value} is out of range")
        if isinstance(self.value, str) and _as_chat_id(self.value) is not None:
            raise ValueError(f"{self.value!r} is a chat id, not a username")

    @classmethod
    def parse(cls, text: str) -> TargetChat:
        chat_id = _as_chat_id(text)
        return cls(chat_id if chat_id is not None else text)

    @property
    def is_id(self) -> bool:
        return isinstance(self.value, int)

    @property
    def is_username(self) -> bool:
        return isinstance(self.value, str)

    def to_display_string(self) -> str:
        return str(self.value)

    def __str__(self) -> str:
        return self.to_display_string()


class ParseMode(str, Enum):
    """Formatting options for the message text."""

    HTML = "HTML"
    MARKDOWN = "Markdown"  # deprecated by Telegram, use MARKDOWN_V2
    MARKDOWN_V2 = "MarkdownV2"

    @classmethod
    def parse(cls, text: str) -> ParseMode:
        """Case-insensitive lookup, e.g. ``"markdownv2"`` -> ``MARKDOWN_V2``."""
        for mode in cls:
            if mode.value.lower() == text.lower():
                if mode is cls.MARKDOWN:
                    warnings.warn(
                        "parse mode Markdown is deprecated, use MarkdownV2 instead",
                        DeprecationWarning,
                        stacklevel=2,
                    )
                return mode
        raise UnknownParseMode(text)

    def canonical_string(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


def build_url(bot_token: str) -> str:
    return f"{_BASE_URL.format(token=bot_token)}/sendMessage"


class Telegram(Channel):
    """Telegram notification channel using the Bot API."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, arbitrary_types_allowed=True
    )

    name: ClassVar[str] = "Telegram"

    bot_token: str = Field(repr=False)
    target_chat: TargetChat
    disable_web_page_preview: bool = False
    disable_notification: bool = False
    parse_mode: ParseMode | None = None

    @field_validator("target_chat", mode="before")
    @classmethod
    def _coerce_target_chat(cls, value: Any) -> Any:
        if isinstance(value, TargetChat):
            return value
        if isinstance(value, bool):
            raise ValueError("target_chat must be a chat id or a username")
        if isinstance(value, int):
            return TargetChat(value)
        if isinstance(value, str):
            return TargetChat.parse(value)
        raise ValueError("target_chat must be a chat id or a username")

    @field_validator("parse_mode", mode="before")
    @classmethod
    def _coerce_parse_mode(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, ParseMode):
            return ParseMode.parse(value)
        return value

    @field_serializer("target_chat")
    def _serialize_target_chat(self, chat: TargetChat) -> int | str:
        return chat.value

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Telegram | None:
        """Read ``TELEGRAM_BOT_TOKEN`` and ``TELEGRAM_TARGET_CHAT``.

        ``TELEGRAM_DISABLE_WEB_PAGE_PREVIEW`` and ``TELEGRAM_DISABLE_NOTIFICATION``
        are presence flags.
        """
        env = environ(env)
        values = require(env, "TELEGRAM_BOT_TOKEN", "TELEGRAM_TARGET_CHAT")
        if values is None:
            return None
        bot_token, target_chat = values
        return cls(
            bot_token=bot_token,
            target_chat=TargetChat.parse(target_chat),
            disable_web_page_preview=flag(env, "TELEGRAM_DISABLE_WEB_PAGE_PREVIEW"),
            disable_notification=flag(env, "TELEGRAM_DISABLE_NOTIFICATION"),
        )

    def build_url(self) -> str:
        return build_url(self.bot_token)

    def build_form(
        self,
        text: str,
        *,
        parse_mode: ParseMode | None = None,
        disable_web_page_preview: bool = False,
        disable_notification: bool = False,
    ) -> dict[str, str]:
        """Form body for ``sendMessage``.

        Optional keys are only present when enabled; call-time flags are OR'd
        with the configured ones and a call-time parse mode wins.
        """
        form = {"chat_id": self.target_chat.to_display_string(), "text": text}
        if disable_web_page_preview or self.disable_web_page_preview:
            form["disable_web_page_preview"] = "true"
        if disable_notification or self.disable_notification:
            form["disable_notification"] = "true"
        mode = parse_mode or self.parse_mode
        if mode is not None:
            form["parse_mode"] = mode.canonical_string()
        return form

    def send(
        self,
        text: str,
        transport: HttpTransport | None = None,
        *,
        parse_mode: ParseMode | None = None,
        disable_web_page_preview: bool = False,
        disable_notification: bool = False,
    ) -> None:
        transport = self._blocking_transport(transport)
        form = self.build_form(
            text,
            parse_mode=parse_mode,
            disable_web_page_preview=disable_web_page_preview,
            disable_notification=disable_notification,
        )
        try:
            transport.post(self.build_url(), data=form)
        except httpx.HTTPError as exc:
            raise self._delivery_error(exc) from exc

    async def send_async(
        self,
        text: str,
        transport: AsyncHttpTransport | None = None,
        *,
        parse_mode: ParseMode | None = None,
        disable_web_page_preview: bool = False,
        disable_notification: bool = False,
    ) -> None:
        transport = self._async_transport(transport)
        form = self.build_form(
            text,
            parse_mode=parse_mode,
            disable_web_page_preview=disable_web_page_preview,
            disable_notification=disable_notification,
        )
        try:
            await transport.post(self.build_url(), data=form)
        except httpx.HTTPError as exc:
            raise self._delivery_error(exc) from exc

    def _delivery_error(self, exc: httpx.HTTPError) -> ChannelError:
        # httpx messages include the request URL, which embeds the token
        message = str(exc)
        if self.bot_token:
            message = message.replace(self.bot_token, "***")
        logger.warning("Telegram delivery to %s failed: %s", self.target_chat, message)
        return ChannelError(self.name, message)
