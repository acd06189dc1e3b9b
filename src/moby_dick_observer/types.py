from __future__ import annotations

from dataclasses import dataclass

BOUGHT = "BOUGHT"
SOLD = "SOLD"


@dataclass(frozen=True)
class RawLogRecord:
    address: str | None
    topics: tuple[str, ...]
    data: str
    tx_hash: str | None = None
    block_number: int | None = None
    removed: bool = False


@dataclass(frozen=True)
class SwapEvent:
    sender: str
    recipient: str
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int
    tx_hash: str
    block_number: int | None = None


@dataclass(frozen=True)
class DecodeError:
    tx_hash: str
    reason: str


@dataclass(frozen=True)
class Classification:
    is_alert: bool
    magnitude: float
    direction: str | None = None
