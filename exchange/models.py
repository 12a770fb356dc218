"""
Data models for the listing buy bot.
Everything here is transient: built once or per attempt, never persisted.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

UNKNOWN_ORDER_ID = "unknownId"


class Category(Enum):
    SPOT = "spot"
    LINEAR = "linear"


class Side(Enum):
    BUY = "Buy"
    SELL = "Sell"


class OrderType(Enum):
    MARKET = "Market"
    LIMIT = "Limit"


@dataclass(frozen=True)
class OrderRequest:
    """The one order the bot tries to place. Constant for the whole run."""
    symbol: str
    qty: str
    category: Category = Category.SPOT
    side: Side = Side.BUY
    order_type: OrderType = OrderType.MARKET
    market_unit: Optional[str] = None   # "baseCoin" / "quoteCoin", UTA only

    def to_params(self) -> Dict[str, Any]:
        params = {
            "category": self.category.value,
            "side": self.side.value,
            "orderType": self.order_type.value,
            "symbol": self.symbol,
            "qty": self.qty,
        }
        if self.market_unit:
            params["marketUnit"] = self.market_unit
        return params


@dataclass
class OrderResult:
    """Outcome of one submission attempt: an order id or an error message."""
    order_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.order_id)

    @classmethod
    def success(cls, order_id: Optional[str]) -> "OrderResult":
        return cls(order_id=order_id or UNKNOWN_ORDER_ID)

    @classmethod
    def failure(cls, error: Optional[str]) -> "OrderResult":
        return cls(error=error or "unknown error")
