"""
Listing Buy Bot — Configuration
All tunable parameters in one place.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from exceptions import ConfigError

START_TIME_FORMAT = "%d.%m.%Y %H:%M:%S"   # DD.MM.YYYY HH:mm:ss, always UTC
PLACEHOLDER_CREDENTIALS = ("key", "secret")
SUPPORTED_CATEGORIES = ("spot", "linear")


def parse_start_time(value: str) -> datetime:
    """Parse a `DD.MM.YYYY HH:mm:ss` string as a UTC timestamp."""
    try:
        parsed = datetime.strptime(value.strip(), START_TIME_FORMAT)
    except ValueError as e:
        raise ConfigError(
            f"Invalid start trading time {value!r} (expected DD.MM.YYYY HH:mm:ss): {e}"
        ) from e
    return parsed.replace(tzinfo=timezone.utc)


@dataclass
class OrderConfig:
    symbol: str = "XRPUSDT"
    quantity: str = "1"                 # Sent as-is, Bybit expects a string
    category: str = "spot"
    # Only for Unified Trading Account, "baseCoin" or "quoteCoin"
    market_unit: Optional[str] = None


@dataclass
class ScheduleConfig:
    start_trading_time: str = "02.04.2024 07:59:55"
    ping_interval_sec: int = 60         # Server time re-poll interval
    time_error_backoff_sec: int = 5     # Wait after a failed server time fetch

    @property
    def start_time(self) -> datetime:
        return parse_start_time(self.start_trading_time)


@dataclass
class ExecutionConfig:
    max_retry_count: int = 50           # Total submission attempts
    retry_delay_sec: float = 0.1        # Pause between attempts


@dataclass
class ExchangeConfig:
    api_key: str = ""
    api_secret: str = ""
    testnet: bool = False               # PRODUCTION
    recv_window: int = 5000
    base_url_mainnet: str = "https://api.bybit.com"
    base_url_testnet: str = "https://api-testnet.bybit.com"

    @property
    def base_url(self) -> str:
        return self.base_url_testnet if self.testnet else self.base_url_mainnet


@dataclass
class BotConfig:
    order: OrderConfig = field(default_factory=OrderConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    log_level: str = "INFO"
    log_file: str = "data/bot.log"

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Load config with environment variable overrides."""
        config = cls()
        config.exchange.api_key = os.getenv("BYBIT_API_KEY", "")
        config.exchange.api_secret = os.getenv("BYBIT_API_SECRET", "")
        config.exchange.testnet = os.getenv("BYBIT_TESTNET", "false").lower() == "true"
        config.order.symbol = os.getenv("SYMBOL", config.order.symbol)
        config.order.quantity = os.getenv("QUANTITY", config.order.quantity)
        config.order.market_unit = os.getenv("MARKET_UNIT") or None
        config.schedule.start_trading_time = os.getenv(
            "START_TRADING_TIME", config.schedule.start_trading_time
        )
        config.schedule.ping_interval_sec = _env_int(
            "PING_INTERVAL_SEC", config.schedule.ping_interval_sec
        )
        config.execution.max_retry_count = _env_int(
            "MAX_RETRY_COUNT", config.execution.max_retry_count
        )
        config.log_level = os.getenv("LOG_LEVEL", "INFO")
        config.log_file = os.getenv("LOG_FILE", config.log_file)
        return config

    def validate(self):
        """Raise ConfigError for anything that would make the run pointless."""
        api_key = self.exchange.api_key
        api_secret = self.exchange.api_secret
        if not api_key or not api_secret:
            raise ConfigError("BYBIT_API_KEY and BYBIT_API_SECRET must be set!")
        if api_key in PLACEHOLDER_CREDENTIALS or api_secret in PLACEHOLDER_CREDENTIALS:
            raise ConfigError("BYBIT_API_KEY and BYBIT_API_SECRET are still placeholders")

        if not self.order.symbol:
            raise ConfigError("Trading symbol must not be empty")
        if not self.order.quantity:
            raise ConfigError("Order quantity must not be empty")
        if self.order.category not in SUPPORTED_CATEGORIES:
            raise ConfigError(
                f"Unsupported category {self.order.category!r}, expected one of {SUPPORTED_CATEGORIES}"
            )

        # Raises ConfigError on a malformed value
        self.schedule.start_time

        if self.schedule.ping_interval_sec <= 0:
            raise ConfigError(
                f"Ping interval must be positive, got {self.schedule.ping_interval_sec}"
            )
        if self.execution.max_retry_count < 1:
            raise ConfigError(
                f"Max retry count must be at least 1, got {self.execution.max_retry_count}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"Unknown log level {self.log_level!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
