from __future__ import annotations

import asyncio
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send(self, text: str) -> None: ...

    async def close(self) -> None: ...


class AlertDispatcher:
    """Sends alerts on their own tasks so a slow send never stalls the stream.

    Failures are logged and counted here; nothing is returned to the caller.
    """

    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier
        self.sent = 0
        self.failed = 0
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, text: str, tx_hash: str = "unknown") -> None:
        task = asyncio.create_task(self._deliver(text, tx_hash), name=f"alert-{tx_hash}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, text: str, tx_hash: str) -> None:
        try:
            await self.notifier.send(text)
        except Exception as exc:
            self.failed += 1
            logger.exception("Failed to send Telegram alert for tx %s: %s", tx_hash, exc)
            return
        self.sent += 1
        logger.info("Telegram alert sent for tx %s", tx_hash)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.wait_idle()
        await self.notifier.close()
