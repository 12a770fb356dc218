"""
Listing Buy Bot — Main Orchestrator.
Waits for the start time on the exchange clock, then places one market buy.
"""

from __future__ import annotations
import asyncio
import os
import sys
import signal
from typing import Optional
import logging

from dotenv import load_dotenv

from config import BotConfig
from exceptions import ConfigError
from exchange.bybit_rest import BybitRestClient
from exchange.models import Category, OrderRequest
from notifications.console import ColorFormatter
from trading.clock_sync import ClockSynchronizer
from trading.order_submitter import OrderSubmitter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

EXIT_OK = 0
EXIT_NO_ORDER = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def setup_logging(level: str = "INFO", log_file: Optional[str] = "data/bot.log"):
    """Colored console handler plus a plain file handler."""
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColorFormatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    handlers = [console]

    if log_file:
        # Create log dir before FileHandler
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        handlers.append(file_handler)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=True)


class Bot:
    """Main bot orchestrator."""

    def __init__(self, config: BotConfig, client: Optional[BybitRestClient] = None):
        self.config = config
        self.client = client or BybitRestClient(
            api_key=config.exchange.api_key,
            api_secret=config.exchange.api_secret,
            base_url=config.exchange.base_url,
            recv_window=config.exchange.recv_window,
        )
        self.order = OrderRequest(
            symbol=config.order.symbol,
            qty=config.order.quantity,
            category=Category(config.order.category),
            market_unit=config.order.market_unit,
        )
        self.clock = ClockSynchronizer(
            client=self.client,
            start_time=config.schedule.start_time,
            ping_interval_sec=config.schedule.ping_interval_sec,
            backoff_sec=config.schedule.time_error_backoff_sec,
        )
        self.submitter = OrderSubmitter(
            client=self.client,
            order=self.order,
            max_retry_count=config.execution.max_retry_count,
            retry_delay_sec=config.execution.retry_delay_sec,
        )

    def print_banner(self):
        start = self.config.schedule.start_time
        logger.info("Trading bot", extra={"color": ("yellow", "bold")})
        logger.info(f"Symbol: {self.order.symbol}", extra={"color": "bold"})
        logger.info(f"Quantity: {self.order.qty}", extra={"color": "bold"})
        logger.info(
            f"Start trading time: {start.strftime('%d.%m.%Y %H:%M:%S')} UTC",
            extra={"color": "bold"},
        )
        logger.info("press Ctrl+C to stop script execution.", extra={"color": "blue"})

    async def run(self) -> int:
        """Full run: banner, wait, trade. Returns the process exit code."""
        self.print_banner()
        try:
            await self.clock.wait_until_start()

            logger.info("Start trading", extra={"color": ("yellow", "bold")})
            result = await self.submitter.run()
        except asyncio.CancelledError:
            logger.info("Interrupted by operator.", extra={"color": "yellow"})
            return EXIT_INTERRUPTED
        finally:
            await self.stop()

        if result is None:
            logger.error(
                f"No order placed after {self.submitter.attempts} attempts."
            )
            return EXIT_NO_ORDER
        return EXIT_OK

    async def stop(self):
        try:
            await asyncio.shield(self.client.close())
        except asyncio.CancelledError:
            logger.info("Interrupted while closing the session.", extra={"color": "yellow"})
        logger.info("Bot was stopped.")


async def main() -> int:
    """Entry point."""
    load_dotenv()

    # Validate critical config before logging depends on it
    try:
        config = BotConfig.from_env()
        config.validate()
    except ConfigError as e:
        setup_logging()
        logger.critical(str(e))
        return EXIT_CONFIG_ERROR

    setup_logging(config.log_level, config.log_file)

    bot = Bot(config)

    # Operator cancellation: Ctrl+C / SIGTERM cancel the running task
    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()

        def handle_signal(sig):
            logger.info(f"Received signal {sig.name}. Initiating shutdown...")
            task.cancel()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))

    try:
        return await bot.run()
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return EXIT_NO_ORDER


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received in main loop.")
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    run()
