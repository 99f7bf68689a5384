"""트레이드 입력/조회/트랜잭션 페이로드 DTO

SDK는 서명하거나 전송하지 않습니다. UnsignedTransaction을 만들어 호출자에게 넘깁니다.
"""

from __future__ import annotations

from enum import Enum

from pydantic import ConfigDict, Field, NonNegativeFloat, NonNegativeInt, PositiveFloat

from avantis_trader_sdk.config.settings import ZERO_ADDRESS
from avantis_trader_sdk.core.dto.io._base import BaseIOModelDTO

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
HEX_DATA_PATTERN = r"^0x([a-fA-F0-9]{2})*$"


class TradeInputOrderType(str, Enum):
    MARKET = "market"
    STOP_LIMIT = "stop_limit"
    LIMIT = "limit"
    MARKET_ZERO_FEE = "market_zero_fee"

    @property
    def onchain_value(self) -> int:
        """컨트랙트 openTrade의 orderType 인자"""
        return _ORDER_TYPE_VALUES[self]


_ORDER_TYPE_VALUES: dict[TradeInputOrderType, int] = {
    TradeInputOrderType.MARKET: 0,
    TradeInputOrderType.LIMIT: 1,
    TradeInputOrderType.STOP_LIMIT: 2,
    TradeInputOrderType.MARKET_ZERO_FEE: 3,
}


class MarginUpdateType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class TradeInput(BaseIOModelDTO):
    """신규 포지션 입력 (표시 단위)"""

    model_config = ConfigDict(use_enum_values=False)  # order_type.onchain_value 사용

    pair: str = Field(min_length=3)
    is_long: bool
    collateral_in_trade: PositiveFloat
    leverage: PositiveFloat
    open_price: NonNegativeFloat
    tp: NonNegativeFloat = 0.0
    sl: NonNegativeFloat = 0.0
    referrer: str = Field(default=ZERO_ADDRESS, pattern=ADDRESS_PATTERN)
    order_type: TradeInputOrderType = TradeInputOrderType.MARKET
    max_slippage_p: NonNegativeFloat = 1.0

    @property
    def position_size_usdc(self) -> float:
        return self.collateral_in_trade * self.leverage


class TradeResponse(BaseIOModelDTO):
    """온체인 오픈 트레이드 (표시 단위)"""

    trader: str = Field(pattern=ADDRESS_PATTERN)
    pair_index: NonNegativeInt
    index: NonNegativeInt
    initial_pos_usdc: NonNegativeFloat
    open_price: NonNegativeFloat
    buy: bool
    leverage: NonNegativeFloat
    tp: NonNegativeFloat
    sl: NonNegativeFloat


class UnsignedTransaction(BaseIOModelDTO):
    """서명 전 트랜잭션 페이로드"""

    to: str = Field(pattern=ADDRESS_PATTERN)
    data: str = Field(pattern=HEX_DATA_PATTERN)
    value: NonNegativeInt = 0

    def to_tx_params(self) -> dict[str, str | int]:
        """web3 sign/send 에 바로 넘길 수 있는 dict"""
        return {"to": self.to, "data": self.data, "value": self.value}
