"""
Order Submitter — places the market order, retrying on any failure.

Idle -> Attempting -> Success (done)
                   -> Failed -> Idle while retry_count < max_retry_count
"""

from __future__ import annotations
import asyncio
from typing import Awaitable, Callable, Optional, TYPE_CHECKING
import logging

from exchange.models import OrderRequest, OrderResult

if TYPE_CHECKING:
    from exchange.bybit_rest import BybitRestClient

logger = logging.getLogger(__name__)


class OrderSubmitter:
    """Submits one fixed order until the exchange returns an order id."""

    def __init__(
        self,
        client: "BybitRestClient",
        order: OrderRequest,
        max_retry_count: int,
        retry_delay_sec: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.order = order
        self.max_retry_count = max_retry_count
        self.retry_delay_sec = retry_delay_sec
        self._sleep = sleep
        self.attempts = 0
        self.retry_count = 0

    async def submit_once(self) -> OrderResult:
        """
        One attempt. Transport and API errors come back as a failed result,
        never as an exception.
        """
        self.attempts += 1
        try:
            res = await self.client.place_order(self.order)
        except Exception as e:
            return OrderResult.failure(str(e) or type(e).__name__)

        if not isinstance(res, dict):
            return OrderResult.failure(f"malformed response: {res!r}")

        if res.get("retCode") == 0:
            result = res.get("result") or {}
            return OrderResult.success(result.get("orderId"))

        return OrderResult.failure(res.get("retMsg"))

    async def run(self) -> Optional[OrderResult]:
        """
        Retry until success or the budget is spent.
        Returns the successful result, or None after max_retry_count failures.
        """
        while self.retry_count < self.max_retry_count:
            result = await self.submit_once()
            if result.succeeded:
                logger.info(
                    f"Submit order completed [orderId={result.order_id}].",
                    extra={"color": "green"},
                )
                return result

            self.retry_count += 1
            logger.info(
                f"Failed to submit order, making another attempt [error={result.error}].",
                extra={"color": "red"},
            )

            if self.retry_count < self.max_retry_count:
                await self._sleep(self.retry_delay_sec)

        logger.error(
            f"[EXEC] {self.order.symbol}: All {self.max_retry_count} attempts failed. Giving up."
        )
        return None
