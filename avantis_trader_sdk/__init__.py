from __future__ import annotations

from .client import TraderClient
from .core.dto.io.feed import PriceFeedResponse
from .core.dto.io.market import PairInfo, Snapshot
from .core.dto.io.trade import MarginUpdateType, TradeInput, TradeInputOrderType
from .core.feed import PriceFeedClient

__all__ = [
    "TraderClient",
    "PriceFeedClient",
    "PriceFeedResponse",
    "PairInfo",
    "Snapshot",
    "TradeInput",
    "TradeInputOrderType",
    "MarginUpdateType",
]
