"""
Dispatcher — send one text to many notifiers.

Every notifier gets exactly one attempt. A failing channel is recorded in its
``DeliveryResult`` and never stops the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from pling.errors import ChannelError
from pling.notifier import Notifier, send_async, send_blocking
from pling.transport import AsyncHttpTransport, HttpTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    notifier: Notifier
    error: ChannelError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Dispatcher:
    """Fans a notification out to registered notifiers."""

    def __init__(self, notifiers: Iterable[Notifier] = ()) -> None:
        self.notifiers: list[Notifier] = list(notifiers)

    def register(self, notifier: Notifier) -> None:
        self.notifiers.append(notifier)

    def dispatch(
        self, text: str, transport: HttpTransport | None = None
    ) -> list[DeliveryResult]:
        """Send sequentially, in registration order."""
        results = []
        for notifier in self.notifiers:
            try:
                send_blocking(notifier, text, transport)
            except ChannelError as exc:
                logger.warning("Failed to send to channel %s: %s", notifier.name, exc)
                results.append(DeliveryResult(notifier, exc))
            else:
                results.append(DeliveryResult(notifier))
        return results

    async def dispatch_async(
        self, text: str, transport: AsyncHttpTransport | None = None
    ) -> list[DeliveryResult]:
        """Send to all notifiers concurrently; results keep registration order."""
        tasks = [self._safe_send(n, text, transport) for n in self.notifiers]
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))

    async def _safe_send(
        self,
        notifier: Notifier,
        text: str,
        transport: AsyncHttpTransport | None,
    ) -> DeliveryResult:
        try:
            await send_async(notifier, text, transport)
        except ChannelError as exc:
            logger.warning("Failed to send to channel %s: %s", notifier.name, exc)
            return DeliveryResult(notifier, exc)
        return DeliveryResult(notifier)
