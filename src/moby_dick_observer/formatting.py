from __future__ import annotations

from html import escape

from .swap_decoder import UNKNOWN_TX
from .types import BOUGHT, Classification


def direction_emoji(direction: str | None) -> str:
    return "🟢" if direction == BOUGHT else "🔴"


def format_amount(magnitude: float) -> str:
    return f"{magnitude:.4f}"


def build_tx_link(explorer_base: str, tx_hash: str | None) -> str | None:
    if not tx_hash or tx_hash == UNKNOWN_TX:
        return None
    return f"{explorer_base.rstrip('/')}/{tx_hash}"


def format_whale_alert(
    classification: Classification,
    tx_hash: str | None,
    asset_symbol: str = "ETH",
    explorer_base: str = "https://etherscan.io/tx",
) -> str:
    emoji = direction_emoji(classification.direction)
    amount = escape(f"{format_amount(classification.magnitude)} {asset_symbol}")

    link = build_tx_link(explorer_base, tx_hash)
    if link:
        link_line = f'🔗 <a href="{escape(link, quote=True)}">View transaction</a>'
    else:
        link_line = f"🔗 Tx: {escape(tx_hash or UNKNOWN_TX)}"

    return (
        f"{emoji} <b>WHALE {classification.direction}!</b> {emoji}\n\n"
        f"💰 <b>Amount:</b> {amount}\n"
        f"{link_line}"
    )
