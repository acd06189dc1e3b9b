from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_POOL_ADDRESS = "0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640"  # Uniswap V3 USDC/WETH 0.05%
DEFAULT_WHALE_THRESHOLD_WEI = 20 * 10**18


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    eth_ws_url: str
    telegram_bot_token: str
    telegram_chat_id: int
    pool_address: str = DEFAULT_POOL_ADDRESS
    whale_threshold_wei: int = DEFAULT_WHALE_THRESHOLD_WEI
    watched_leg: int = 1
    asset_symbol: str = "ETH"
    alert_interval_seconds: float = 1.0
    reconnect_delay_seconds: float = 5.0
    explorer_tx_base: str = "https://etherscan.io/tx"
    health_log_interval_seconds: int = 60
    log_level: str = "INFO"


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _required_int(name: str) -> int:
    raw = _required(name)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a valid integer, got {raw!r}") from exc


def _optional_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a valid integer, got {raw!r}") from exc


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def load_settings() -> Settings:
    load_dotenv()
    settings = Settings(
        eth_ws_url=_required("ALCHEMY_WSS_URL"),
        telegram_bot_token=_required("TELEGRAM_BOT_TOKEN"),
        telegram_chat_id=_required_int("TELEGRAM_CHAT_ID"),
        pool_address=os.getenv("POOL_ADDRESS", DEFAULT_POOL_ADDRESS).strip() or DEFAULT_POOL_ADDRESS,
        whale_threshold_wei=_optional_int("WHALE_THRESHOLD_WEI", DEFAULT_WHALE_THRESHOLD_WEI),
        watched_leg=_optional_int("WATCHED_LEG", 1),
        asset_symbol=os.getenv("ASSET_SYMBOL", "ETH").strip() or "ETH",
        alert_interval_seconds=_optional_float("ALERT_INTERVAL_SECONDS", 1.0),
        reconnect_delay_seconds=_optional_float("RECONNECT_DELAY_SECONDS", 5.0),
        explorer_tx_base=os.getenv("EXPLORER_TX_BASE", "https://etherscan.io/tx").strip(),
        health_log_interval_seconds=_optional_int("HEALTH_LOG_INTERVAL_SECONDS", 60),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
    if settings.watched_leg not in (0, 1):
        raise ConfigError(f"WATCHED_LEG must be 0 or 1, got {settings.watched_leg}")
    if settings.whale_threshold_wei < 0:
        raise ConfigError("WHALE_THRESHOLD_WEI must not be negative")
    if settings.reconnect_delay_seconds <= 0:
        raise ConfigError("RECONNECT_DELAY_SECONDS must be positive")
    if settings.health_log_interval_seconds <= 0:
        raise ConfigError("HEALTH_LOG_INTERVAL_SECONDS must be positive")
    return settings
