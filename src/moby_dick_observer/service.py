from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

import websockets

from .chain_stream import EthLogSource, SubscriptionError
from .config import Settings
from .detector import classify
from .dispatcher import AlertDispatcher, Notifier
from .formatting import build_tx_link, format_amount, format_whale_alert
from .rate_limit import AlertRateLimiter
from .swap_decoder import decode_swap_log
from .telegram_notifier import TelegramNotifier
from .types import DecodeError, RawLogRecord

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (
    OSError,
    TimeoutError,
    asyncio.TimeoutError,
    websockets.WebSocketException,
    SubscriptionError,
)


class Subscription(Protocol):
    def __aiter__(self) -> AsyncIterator[RawLogRecord]: ...

    async def close(self) -> None: ...


class LogSource(Protocol):
    async def open(self) -> Subscription: ...


class SupervisorState(str, enum.Enum):
    CONNECTING = "connecting"
    STREAMING = "streaming"
    BACKING_OFF = "backing-off"


@dataclass
class Metrics:
    records_seen: int = 0
    decode_failures: int = 0
    whales_detected: int = 0
    alerts_rate_limited: int = 0
    reconnects: int = 0


class WhaleWatchService:
    def __init__(
        self,
        settings: Settings,
        source: LogSource | None = None,
        notifier: Notifier | None = None,
        rate_limiter: AlertRateLimiter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.metrics = Metrics()
        self.state = SupervisorState.CONNECTING
        self.source = source or EthLogSource(settings.eth_ws_url, settings.pool_address)
        self.dispatcher = AlertDispatcher(
            notifier or TelegramNotifier(settings.telegram_bot_token, settings.telegram_chat_id)
        )
        self.rate_limiter = rate_limiter or AlertRateLimiter(settings.alert_interval_seconds)
        self._sleep = sleep

    async def run(self) -> None:
        """Stream, and reconnect after every failure. Only cancellation stops it."""
        health_task = asyncio.create_task(self._health_loop())
        try:
            while True:
                try:
                    await self._stream_once()
                    logger.info("Stream ended.")
                except asyncio.CancelledError:
                    raise
                except TRANSPORT_ERRORS as exc:
                    logger.error("Connection error: %s", exc)
                except Exception:
                    logger.exception("Unexpected error in event pipeline")

                self.state = SupervisorState.BACKING_OFF
                delay = self.settings.reconnect_delay_seconds
                logger.info("Reconnecting in %.1f seconds...", delay)
                await self._sleep(delay)
                self.metrics.reconnects += 1
        finally:
            health_task.cancel()
            await asyncio.gather(health_task, return_exceptions=True)
            await self.dispatcher.close()

    async def _stream_once(self) -> None:
        self.state = SupervisorState.CONNECTING
        subscription = await self.source.open()
        self.state = SupervisorState.STREAMING
        logger.info("Connected. Listening for swaps on pool %s", self.settings.pool_address)
        try:
            async for record in subscription:
                self.handle_record(record)
        finally:
            await subscription.close()

    def handle_record(self, record: RawLogRecord) -> None:
        self.metrics.records_seen += 1

        if record.removed:
            logger.info("Skipping log removed by chain reorg. Tx: %s", record.tx_hash or "unknown")
            return

        swap = decode_swap_log(record)
        if isinstance(swap, DecodeError):
            self.metrics.decode_failures += 1
            logger.warning("Failed to decode log: %s. Tx: %s. Skipping...", swap.reason, swap.tx_hash)
            return

        result = classify(swap, self.settings.whale_threshold_wei, self.settings.watched_leg)
        amount = format_amount(result.magnitude)
        symbol = self.settings.asset_symbol
        if not result.is_alert:
            logger.info("Small swap: %s %s | Tx: %s", amount, symbol, swap.tx_hash)
            return

        self.metrics.whales_detected += 1
        logger.warning(
            "WHALE %s! %s %s | Tx: %s",
            result.direction,
            amount,
            symbol,
            build_tx_link(self.settings.explorer_tx_base, swap.tx_hash) or swap.tx_hash,
        )

        if not self.rate_limiter.try_acquire():
            self.metrics.alerts_rate_limited += 1
            logger.info("Rate limited: skipping Telegram alert for tx %s", swap.tx_hash)
            return

        text = format_whale_alert(
            result,
            swap.tx_hash,
            asset_symbol=symbol,
            explorer_base=self.settings.explorer_tx_base,
        )
        self.dispatcher.dispatch(text, swap.tx_hash)

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.health_log_interval_seconds)
            logger.info(
                (
                    "health state=%s records=%d decode_failures=%d whales=%d "
                    "rate_limited=%d alerts_sent=%d alerts_failed=%d reconnects=%d"
                ),
                self.state.value,
                self.metrics.records_seen,
                self.metrics.decode_failures,
                self.metrics.whales_detected,
                self.metrics.alerts_rate_limited,
                self.dispatcher.sent,
                self.dispatcher.failed,
                self.metrics.reconnects,
            )
