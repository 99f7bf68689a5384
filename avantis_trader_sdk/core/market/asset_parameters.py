"""
자산(페어) 단위 OI / 사용률 / 스큐 / 1% 뎁스 집계

최대 OI는 원격 조회 없이 페어 메타데이터의 max_open_interest_usdc를 사용합니다.
뎁스는 OI와 독립된 원격 조회입니다.
"""

from __future__ import annotations

import asyncio

from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.core.decimals import from_blockchain6
from avantis_trader_sdk.core.dto.internal.metrics import EntityMetrics
from avantis_trader_sdk.core.dto.internal.registry import PairCacheState
from avantis_trader_sdk.core.dto.io.market import (
    Depth,
    OpenInterest,
    OpenInterestLimits,
    Skew,
    Utilization,
)
from avantis_trader_sdk.core.market._utils import gather_per_entity
from avantis_trader_sdk.core.market.metrics import derive_metrics
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.types import SIDE_LONG, SIDE_SHORT, PairIndex
from avantis_trader_sdk.infra.rpc.ledger_client import LedgerClient

logger = PipelineLogger.get_logger("asset_parameters", "market")


class AssetAggregator:
    def __init__(self, ledger: LedgerClient, registry: PairRegistry) -> None:
        self._ledger = ledger
        self._registry = registry

    async def _pair_oi(
        self, state: PairCacheState, pair_index: PairIndex, timeout: float | None
    ) -> OpenInterest:
        long_raw, short_raw = await asyncio.gather(
            self._ledger.call(
                "TradingStorage", "openInterestUsdc", pair_index, SIDE_LONG, timeout=timeout
            ),
            self._ledger.call(
                "TradingStorage", "openInterestUsdc", pair_index, SIDE_SHORT, timeout=timeout
            ),
        )
        return OpenInterest(
            long=from_blockchain6(long_raw),
            short=from_blockchain6(short_raw),
            max=state.pairs[pair_index].max_open_interest_usdc,
        )

    async def get_oi_limits(
        self, timeout: float | None = None
    ) -> dict[PairIndex, OpenInterestLimits]:
        """페어별 OI 한도 (메타데이터 기준)"""
        state = await self._registry.resolve(timeout=timeout)
        return {
            i: OpenInterestLimits(
                index=i,
                max_long=info.max_open_interest_usdc,
                max_short=info.max_open_interest_usdc,
            )
            for i, info in state.pairs.items()
        }

    async def get_metrics(self, timeout: float | None = None) -> dict[PairIndex, EntityMetrics]:
        """페어별 OI + 파생 지표 (페어당 OI 조회 1회)"""
        state = await self._registry.resolve(timeout=timeout)

        async def fetch(pair_index: PairIndex) -> EntityMetrics:
            oi = await self._pair_oi(state, pair_index, timeout)
            return derive_metrics(oi, entity="pair", key=pair_index)

        return await gather_per_entity(state.pairs, fetch, entity="pair_oi", logger=logger)

    async def get_oi(self, timeout: float | None = None) -> dict[PairIndex, OpenInterest]:
        metrics = await self.get_metrics(timeout)
        return {i: m.open_interest for i, m in metrics.items()}

    async def get_utilization(
        self, timeout: float | None = None
    ) -> dict[PairIndex, Utilization]:
        metrics = await self.get_metrics(timeout)
        return {i: m.utilization for i, m in metrics.items()}

    async def get_skew(self, timeout: float | None = None) -> dict[PairIndex, Skew]:
        metrics = await self.get_metrics(timeout)
        return {i: m.skew for i, m in metrics.items()}

    async def get_one_percent_depth(
        self, timeout: float | None = None
    ) -> dict[PairIndex, Depth]:
        state = await self._registry.resolve(timeout=timeout)

        async def fetch(pair_index: PairIndex) -> Depth:
            above, below = await asyncio.gather(
                self._ledger.call(
                    "PairInfos", "onePercentDepthAboveUsdc", pair_index, timeout=timeout
                ),
                self._ledger.call(
                    "PairInfos", "onePercentDepthBelowUsdc", pair_index, timeout=timeout
                ),
            )
            return Depth(
                one_percent_depth_above_usdc=from_blockchain6(above),
                one_percent_depth_below_usdc=from_blockchain6(below),
            )

        return await gather_per_entity(state.pairs, fetch, entity="pair_depth", logger=logger)
