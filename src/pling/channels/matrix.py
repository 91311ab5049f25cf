"""
Matrix channel — post an ``m.text`` message into a room.

Uses the client-server API with the access token passed as query parameter.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import ClassVar
from urllib.parse import urljoin

import httpx
from pydantic import AnyUrl, Field

from pling.channel import Channel
from pling.channels.slack import escape_quotes
from pling.env import environ, parse_url, require
from pling.errors import ChannelError
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)

_JSON = {"Content-Type": "application/json"}


def payload_to_json(text: str) -> str:
    """``{"msgtype":"m.text","body":...}`` with double quotes escaped."""
    return '{"msgtype":"m.text","body":"' + escape_quotes(text) + '"}'


class Matrix(Channel):
    """Matrix room notification channel."""

    name: ClassVar[str] = "Matrix"

    homeserver: AnyUrl
    room_id: str
    access_token: str = Field(repr=False)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Matrix | None:
        """Read ``MATRIX_HOMESERVER``, ``MATRIX_ROOM_ID`` and ``MATRIX_ACCESS_TOKEN``.

        All three must be set and the homeserver must be a valid URL.
        """
        values = require(
            environ(env), "MATRIX_HOMESERVER", "MATRIX_ROOM_ID", "MATRIX_ACCESS_TOKEN"
        )
        if values is None:
            return None
        homeserver = parse_url(values[0])
        if homeserver is None:
            return None
        return cls(homeserver=homeserver, room_id=values[1], access_token=values[2])

    def build_url(self) -> str:
        # room id and token are inserted verbatim, without percent-encoding
        path = (
            f"/_matrix/client/r0/rooms/{self.room_id}/send/m.room.message"
            f"?access_token={self.access_token}"
        )
        return urljoin(str(self.homeserver), path)

    def send(self, text: str, transport: HttpTransport | None = None) -> None:
        transport = self._blocking_transport(transport)
        try:
            transport.post(self.build_url(), content=payload_to_json(text), headers=_JSON)
        except httpx.HTTPError as exc:
            raise self._delivery_error(exc) from exc

    async def send_async(
        self, text: str, transport: AsyncHttpTransport | None = None
    ) -> None:
        transport = self._async_transport(transport)
        try:
            await transport.post(
                self.build_url(), content=payload_to_json(text), headers=_JSON
            )
        except httpx.HTTPError as exc:
            raise self._delivery_error(exc) from exc

    def _delivery_error(self, exc: httpx.HTTPError) -> ChannelError:
        message = str(exc)
        if self.access_token:
            message = message.replace(self.access_token, "***")
        logger.warning("Matrix delivery to %s failed: %s", self.homeserver, message)
        return ChannelError(self.name, message)
