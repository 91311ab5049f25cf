"""
Channel — base class for all notification channels.

Each channel (Slack, Telegram, Matrix, ...) is a frozen pydantic model holding
exactly the fields needed to address that backend. Subclasses implement
``from_env()`` and ``send()``, and network channels also ``send_async()``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from pling.errors import UnsupportedTransport
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)


class Channel(BaseModel, ABC):
    """Base class for notification channels."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Tag used in config documents and log messages.
    name: ClassVar[str] = "unnamed"

    @classmethod
    @abstractmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Channel | None:
        """Build the channel from environment variables, or None if unconfigured."""
        ...

    @abstractmethod
    def send(self, text: str, transport: HttpTransport | None = None) -> None:
        """Send ``text`` and block until the backend accepted it."""
        ...

    async def send_async(
        self, text: str, transport: AsyncHttpTransport | None = None
    ) -> None:
        """Send ``text`` from a coroutine. Default: run the blocking send in place."""
        if transport is not None:
            self._check_transport(transport, AsyncHttpTransport)
        self.send(text)

    def _check_transport(self, transport: object, expected: type) -> None:
        if not isinstance(transport, expected):
            raise UnsupportedTransport(
                f"{self.name}: expected {expected.__name__}, got {type(transport).__name__}"
            )

    def _blocking_transport(self, transport: HttpTransport | None) -> HttpTransport:
        if transport is None:
            return HttpTransport()
        self._check_transport(transport, HttpTransport)
        return transport

    def _async_transport(
        self, transport: AsyncHttpTransport | None
    ) -> AsyncHttpTransport:
        if transport is None:
            return AsyncHttpTransport()
        self._check_transport(transport, AsyncHttpTransport)
        return transport
