import pytest

from moby_dick_observer.swap_decoder import SWAP_TOPIC
from moby_dick_observer.types import RawLogRecord

SENDER = "0xe592427a0aece92de3edee1f18e0157c05861564"
RECIPIENT = "0x1111111254eeb25477b68fb85ed929f73a960582"


def _word(value: int) -> str:
    return (value % (1 << 256)).to_bytes(32, "big").hex()


def _address_topic(address: str) -> str:
    return "0x" + address[2:].rjust(64, "0")


def swap_log(
    amount0: int = 1_000_000_000,
    amount1: int = -(10**18),
    sqrt_price_x96: int = 1_500_000_000_000_000_000_000_000_000_000,
    liquidity: int = 12_345_678_901_234_567,
    tick: int = 195_000,
    tx_hash: str | None = "0xabc123",
    block_number: int | None = 19_000_000,
) -> RawLogRecord:
    data = "0x" + "".join(_word(v) for v in (amount0, amount1, sqrt_price_x96, liquidity, tick))
    return RawLogRecord(
        address="0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640",
        topics=(SWAP_TOPIC, _address_topic(SENDER), _address_topic(RECIPIENT)),
        data=data,
        tx_hash=tx_hash,
        block_number=block_number,
    )


@pytest.fixture
def make_swap_log():
    return swap_log
