from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import websockets

from .swap_decoder import SWAP_TOPIC
from .types import RawLogRecord

logger = logging.getLogger(__name__)


class SubscriptionError(RuntimeError):
    pass


def build_subscribe_request(address: str, topic: str = SWAP_TOPIC, request_id: int = 1) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "eth_subscribe",
        "params": ["logs", {"address": address, "topics": [topic]}],
    }


def parse_subscription_reply(raw: str | bytes) -> str:
    try:
        reply = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SubscriptionError(f"Invalid eth_subscribe reply: {exc}") from exc
    if not isinstance(reply, dict):
        raise SubscriptionError(f"Unexpected eth_subscribe reply: {reply!r}")
    if reply.get("error"):
        raise SubscriptionError(f"eth_subscribe rejected: {reply['error']}")
    sub_id = reply.get("result")
    if not isinstance(sub_id, str) or not sub_id:
        raise SubscriptionError(f"eth_subscribe reply has no subscription id: {reply!r}")
    return sub_id


def parse_log_notification(raw: str | bytes, subscription_id: str | None = None) -> RawLogRecord | None:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict) or payload.get("method") != "eth_subscription":
        return None

    params = payload.get("params")
    if not isinstance(params, dict):
        return None
    if subscription_id is not None and params.get("subscription") != subscription_id:
        return None

    result = params.get("result")
    if not isinstance(result, dict):
        return None

    topics = result.get("topics")
    return RawLogRecord(
        address=_string_or_none(result.get("address")),
        topics=tuple(topics) if isinstance(topics, list) else (),
        data=result.get("data", ""),
        tx_hash=_string_or_none(result.get("transactionHash")),
        block_number=_hex_int_or_none(result.get("blockNumber")),
        removed=bool(result.get("removed", False)),
    )


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _hex_int_or_none(value: Any) -> int | None:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16)
        except ValueError:
            return None
    return None


class LogSubscription:
    """A live ``eth_subscribe`` logs subscription. Iterable once."""

    def __init__(self, ws: Any, subscription_id: str) -> None:
        self.subscription_id = subscription_id
        self._ws = ws
        self._consumed = False

    def __aiter__(self) -> AsyncIterator[RawLogRecord]:
        if self._consumed:
            raise RuntimeError("Subscription already consumed; open a new one")
        self._consumed = True
        return self._records()

    async def _records(self) -> AsyncIterator[RawLogRecord]:
        # Iteration ends on a clean close and raises ConnectionClosedError otherwise.
        async for raw in self._ws:
            record = parse_log_notification(raw, self.subscription_id)
            if record is None:
                logger.debug("Ignoring non-log frame: %.200s", raw)
                continue
            yield record

    async def close(self) -> None:
        await self._ws.close()


class EthLogSource:
    def __init__(
        self,
        ws_url: str,
        pool_address: str,
        topic: str = SWAP_TOPIC,
        open_timeout: float = 20.0,
    ) -> None:
        self.ws_url = ws_url
        self.pool_address = pool_address
        self.topic = topic
        self.open_timeout = open_timeout

    async def open(self) -> LogSubscription:
        ws = await websockets.connect(
            self.ws_url,
            ping_interval=20,
            ping_timeout=20,
            open_timeout=self.open_timeout,
        )
        try:
            sub_id = await asyncio.wait_for(self._subscribe(ws), self.open_timeout)
        except BaseException:
            await ws.close()
            raise
        logger.info("Subscribed to Swap logs on %s (subscription=%s)", self.pool_address, sub_id)
        return LogSubscription(ws, sub_id)

    async def _subscribe(self, ws: Any) -> str:
        await ws.send(json.dumps(build_subscribe_request(self.pool_address, self.topic)))
        return parse_subscription_reply(await ws.recv())
