from __future__ import annotations

from .types import BOUGHT, SOLD, Classification, SwapEvent

WEI_PER_ETH = 10**18


def watched_amount(event: SwapEvent, leg: int = 1) -> int:
    if leg == 0:
        return event.amount0
    if leg == 1:
        return event.amount1
    raise ValueError(f"leg must be 0 or 1, got {leg}")


def wei_to_eth(wei: int) -> float:
    return wei / WEI_PER_ETH


def trade_direction(amount: int) -> str:
    """Direction of the trade from the pool's signed delta of the watched leg.

    Swap amounts are pool-relative: a negative amount means the pool paid
    the asset out, so the counterparty bought it. Zero is reported as SOLD.
    """
    return BOUGHT if amount < 0 else SOLD


def classify(event: SwapEvent, threshold_wei: int, leg: int = 1) -> Classification:
    amount = watched_amount(event, leg)
    magnitude_wei = abs(amount)
    magnitude = wei_to_eth(magnitude_wei)
    if magnitude_wei < threshold_wei:
        return Classification(is_alert=False, magnitude=magnitude)
    return Classification(is_alert=True, magnitude=magnitude, direction=trade_direction(amount))
