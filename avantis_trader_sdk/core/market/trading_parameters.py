"""
트레이드 단위 파라미터 조회 (오픈 수수료, 가격 영향, 손실 보호)

모두 read 전용 원장 호출이며, 페어는 이름 또는 인덱스로 지정합니다.
"""

from __future__ import annotations

from avantis_trader_sdk.common.exceptions import PairNotFoundError
from avantis_trader_sdk.core.decimals import from_blockchain6, from_blockchain10, to_blockchain6
from avantis_trader_sdk.core.dto.io.market import LossProtectionInfo
from avantis_trader_sdk.core.dto.io.trade import TradeInput
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.types import PairIndex, PairName
from avantis_trader_sdk.infra.rpc.ledger_client import LedgerClient


async def resolve_pair_index(
    registry: PairRegistry, pair: PairName | PairIndex, timeout: float | None = None
) -> PairIndex:
    """이름/인덱스 → 인덱스 (현재 캐시에 없으면 PairNotFoundError)"""
    if isinstance(pair, int):
        if await registry.get_pair_by_index(pair, timeout) is None:
            raise PairNotFoundError(pair)
        return pair
    index = await registry.get_pair_index(pair, timeout)
    if index is None:
        raise PairNotFoundError(pair)
    return index


class TradingParameters:
    def __init__(self, ledger: LedgerClient, registry: PairRegistry) -> None:
        self._ledger = ledger
        self._registry = registry

    async def get_opening_fee(
        self,
        pair: PairName | PairIndex,
        position_size_usdc: float,
        is_long: bool,
        timeout: float | None = None,
    ) -> float:
        """오픈 수수료 (USDC)"""
        pair_index = await resolve_pair_index(self._registry, pair, timeout)
        raw = await self._ledger.call(
            "PairInfos",
            "getOpenFeeUsdc",
            pair_index,
            to_blockchain6(position_size_usdc),
            is_long,
            timeout=timeout,
        )
        return from_blockchain6(raw)

    async def get_price_impact(
        self,
        pair: PairName | PairIndex,
        position_size_usdc: float,
        is_long: bool,
        timeout: float | None = None,
    ) -> float:
        """가격 영향 (퍼센트)"""
        pair_index = await resolve_pair_index(self._registry, pair, timeout)
        raw = await self._ledger.call(
            "PairInfos",
            "getPriceImpactP",
            pair_index,
            is_long,
            to_blockchain6(position_size_usdc),
            timeout=timeout,
        )
        return from_blockchain10(raw)

    async def get_loss_protection_tier(
        self,
        pair: PairName | PairIndex,
        position_size_usdc: float,
        timeout: float | None = None,
    ) -> int:
        pair_index = await resolve_pair_index(self._registry, pair, timeout)
        raw = await self._ledger.call(
            "PairInfos",
            "getLossProtectionTier",
            pair_index,
            to_blockchain6(position_size_usdc),
            timeout=timeout,
        )
        return int(raw)

    async def get_loss_protection_percentage(
        self,
        pair: PairName | PairIndex,
        tier: int,
        timeout: float | None = None,
    ) -> float:
        pair_index = await resolve_pair_index(self._registry, pair, timeout)
        raw = await self._ledger.call(
            "PairInfos", "getLossProtectionP", pair_index, tier, timeout=timeout
        )
        return from_blockchain10(raw)

    async def get_loss_protection_for_trade(
        self, trade: TradeInput, timeout: float | None = None
    ) -> LossProtectionInfo:
        """트레이드 입력 기준 손실 보호 정보

        amount = 담보(collateral_in_trade) * percentage / 100
        """
        tier = await self.get_loss_protection_tier(
            trade.pair, trade.position_size_usdc, timeout=timeout
        )
        percentage = await self.get_loss_protection_percentage(trade.pair, tier, timeout=timeout)
        return LossProtectionInfo(
            tier=tier,
            percentage=percentage,
            amount=trade.collateral_in_trade * percentage / 100,
        )
