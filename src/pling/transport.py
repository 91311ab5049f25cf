"""
HTTP transports used by the network channels.

``HttpTransport`` wraps ``httpx.Client`` for blocking sends and
``AsyncHttpTransport`` wraps ``httpx.AsyncClient`` for awaitable sends. Both
expose the same ``post()`` call, so a channel builds its request once and hands
it to whichever transport it was given.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pling import __version__

logger = logging.getLogger(__name__)

REPOSITORY = "https://github.com/pling-notify/pling"
USER_AGENT = f"pling/{__version__} {REPOSITORY}"

DEFAULT_TIMEOUT = 30.0


class HttpTransport:
    """Blocking HTTP transport.

    When ``client`` is given it is reused for every request and left open;
    otherwise a short-lived client is created per request.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._client = client
        self.timeout = timeout

    def post(
        self,
        url: str,
        *,
        content: str | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """POST and raise ``httpx.HTTPStatusError`` on a non-2xx answer."""
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            resp = client.post(
                url,
                content=content,
                data=data,
                headers=_headers(headers),
            )
            resp.raise_for_status()
            return resp
        finally:
            if not self._client:
                client.close()


class AsyncHttpTransport:
    """Awaitable HTTP transport, the ``httpx.AsyncClient`` twin of ``HttpTransport``."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._client = client
        self.timeout = timeout

    async def post(
        self,
        url: str,
        *,
        content: str | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            resp = await client.post(
                url,
                content=content,
                data=data,
                headers=_headers(headers),
            )
            resp.raise_for_status()
            return resp
        finally:
            if not self._client:
                await client.aclose()


def _headers(extra: dict[str, str] | None) -> dict[str, Any]:
    return {"User-Agent": USER_AGENT, **(extra or {})}
