import asyncio
import json

import pytest

import moby_dick_observer.chain_stream as chain_stream
from moby_dick_observer.chain_stream import (
    EthLogSource,
    SubscriptionError,
    build_subscribe_request,
    parse_log_notification,
    parse_subscription_reply,
)
from moby_dick_observer.swap_decoder import SWAP_TOPIC

SUB_ID = "0x9cef478923ff08bf67fde6c64013158d"


def _notification(result, subscription=SUB_ID) -> str:
    return json.dumps(
        {
            "jsonrpc": "2.0",
            "method": "eth_subscription",
            "params": {"subscription": subscription, "result": result},
        }
    )


class FakeWS:
    def __init__(self, reply, frames=()) -> None:
        self.reply = reply
        self.frames = list(frames)
        self.sent = []
        self.closed = False

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def recv(self) -> str:
        return json.dumps(self.reply)

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for frame in self.frames:
            yield frame

    async def close(self) -> None:
        self.closed = True


def test_subscribe_request_filters_pool_and_swap_topic() -> None:
    request = build_subscribe_request("0xpool")
    assert request["method"] == "eth_subscribe"
    assert request["params"] == ["logs", {"address": "0xpool", "topics": [SWAP_TOPIC]}]


def test_subscription_reply_parsing() -> None:
    assert parse_subscription_reply('{"jsonrpc":"2.0","id":1,"result":"0x1"}') == "0x1"
    with pytest.raises(SubscriptionError):
        parse_subscription_reply('{"jsonrpc":"2.0","id":1,"error":{"code":-32602,"message":"bad"}}')
    with pytest.raises(SubscriptionError):
        parse_subscription_reply("not json")
    with pytest.raises(SubscriptionError):
        parse_subscription_reply('{"jsonrpc":"2.0","id":1}')


def test_parse_log_notification() -> None:
    raw = _notification(
        {
            "address": "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640",
            "topics": [SWAP_TOPIC, "0x01", "0x02"],
            "data": "0x00",
            "blockNumber": "0x121eac0",
            "transactionHash": "0xfeed",
            "removed": False,
        }
    )
    record = parse_log_notification(raw, SUB_ID)

    assert record is not None
    assert record.topics == (SWAP_TOPIC, "0x01", "0x02")
    assert record.tx_hash == "0xfeed"
    assert record.block_number == 19_000_000
    assert record.removed is False


def test_parse_log_notification_ignores_other_frames() -> None:
    assert parse_log_notification('{"jsonrpc":"2.0","id":1,"result":"0x1"}') is None
    assert parse_log_notification("garbage") is None
    assert parse_log_notification(_notification({"data": "0x"}, subscription="0xother"), SUB_ID) is None
    assert parse_log_notification(_notification("0xnot-a-log"), SUB_ID) is None


def test_open_subscribes_and_yields_records(monkeypatch) -> None:
    frames = [
        _notification({"topics": [SWAP_TOPIC], "data": "0x", "transactionHash": "0x1"}),
        '{"jsonrpc":"2.0","method":"something_else"}',
        _notification({"topics": [SWAP_TOPIC], "data": "0x", "transactionHash": "0x2"}),
    ]
    ws = FakeWS({"jsonrpc": "2.0", "id": 1, "result": SUB_ID}, frames)

    async def fake_connect(*args, **kwargs):
        return ws

    monkeypatch.setattr(chain_stream.websockets, "connect", fake_connect)

    async def scenario():
        source = EthLogSource("wss://example.test", "0xpool")
        subscription = await source.open()
        records = [r async for r in subscription]
        with pytest.raises(RuntimeError):
            subscription.__aiter__()
        await subscription.close()
        return records

    records = asyncio.run(scenario())

    assert [r.tx_hash for r in records] == ["0x1", "0x2"]
    assert ws.sent[0]["params"][1]["address"] == "0xpool"
    assert ws.closed is True


def test_open_closes_socket_when_subscription_rejected(monkeypatch) -> None:
    ws = FakeWS({"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "nope"}})

    async def fake_connect(*args, **kwargs):
        return ws

    monkeypatch.setattr(chain_stream.websockets, "connect", fake_connect)

    with pytest.raises(SubscriptionError):
        asyncio.run(EthLogSource("wss://example.test", "0xpool").open())
    assert ws.closed is True


class SilentWS(FakeWS):
    async def recv(self) -> str:
        await asyncio.Event().wait()
        return ""


def test_open_times_out_when_subscription_reply_never_arrives(monkeypatch) -> None:
    ws = SilentWS(reply=None)

    async def fake_connect(*args, **kwargs):
        return ws

    monkeypatch.setattr(chain_stream.websockets, "connect", fake_connect)

    source = EthLogSource("wss://example.test", "0xpool", open_timeout=0.05)
    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(source.open())
    assert ws.sent[0]["method"] == "eth_subscribe"
    assert ws.closed is True
