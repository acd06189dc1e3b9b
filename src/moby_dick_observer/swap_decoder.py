from __future__ import annotations

from .types import DecodeError, RawLogRecord, SwapEvent

# keccak256("Swap(address,address,int256,int256,uint160,uint128,int24)")
SWAP_TOPIC = "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"

UNKNOWN_TX = "unknown"

_WORD = 32
_DATA_WORDS = 5  # amount0, amount1, sqrtPriceX96, liquidity, tick


def decode_swap_log(record: RawLogRecord) -> SwapEvent | DecodeError:
    """Decode a Uniswap V3 ``Swap`` log.

    Returns a ``DecodeError`` instead of raising so the caller can log the
    transaction and keep consuming the stream.
    """
    tx_hash = record.tx_hash or UNKNOWN_TX
    try:
        return _decode(record, tx_hash)
    except (ValueError, TypeError, IndexError) as exc:
        return DecodeError(tx_hash=tx_hash, reason=str(exc) or type(exc).__name__)


def _decode(record: RawLogRecord, tx_hash: str) -> SwapEvent:
    topics = record.topics
    if len(topics) != 3:
        raise ValueError(f"expected 3 topics, got {len(topics)}")
    if _strip_0x(topics[0]).lower() != SWAP_TOPIC[2:]:
        raise ValueError(f"unexpected event topic {topics[0]}")

    sender = _topic_address(topics[1])
    recipient = _topic_address(topics[2])

    payload = _hex_bytes(record.data)
    if len(payload) != _DATA_WORDS * _WORD:
        raise ValueError(
            f"expected {_DATA_WORDS * _WORD} data bytes, got {len(payload)}"
        )
    words = [payload[i : i + _WORD] for i in range(0, len(payload), _WORD)]

    amount0 = _int_word(words[0], 256)
    amount1 = _int_word(words[1], 256)
    sqrt_price_x96 = _uint_word(words[2], 160)
    liquidity = _uint_word(words[3], 128)
    tick = _int_word(words[4], 24)

    return SwapEvent(
        sender=sender,
        recipient=recipient,
        amount0=amount0,
        amount1=amount1,
        sqrt_price_x96=sqrt_price_x96,
        liquidity=liquidity,
        tick=tick,
        tx_hash=tx_hash,
        block_number=record.block_number,
    )


def _strip_0x(value: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected hex string, got {type(value).__name__}")
    return value[2:] if value[:2] in ("0x", "0X") else value


def _hex_bytes(value: str) -> bytes:
    return bytes.fromhex(_strip_0x(value))


def _topic_address(topic: str) -> str:
    word = _hex_bytes(topic)
    if len(word) != _WORD:
        raise ValueError(f"topic is {len(word)} bytes, expected {_WORD}")
    if any(word[:12]):
        raise ValueError(f"topic {topic} is not an address")
    return "0x" + word[12:].hex()


def _uint_word(word: bytes, bits: int) -> int:
    value = int.from_bytes(word, "big")
    if value >> bits:
        raise ValueError(f"value does not fit uint{bits}")
    return value


def _int_word(word: bytes, bits: int) -> int:
    value = int.from_bytes(word, "big", signed=True)
    bound = 1 << (bits - 1)
    if not -bound <= value < bound:
        raise ValueError(f"value does not fit int{bits}")
    return value
