"""
카테고리(그룹) 단위 OI / 사용률 / 스큐 집계

그룹별로 독립·동시 조회하며, 한 그룹의 실패는 로그 후 결과에서 제외합니다.
최대 OI는 groupCollateral(g, isLong=True) 값을 사용합니다.
"""

from __future__ import annotations

import asyncio

from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.core.decimals import from_blockchain6
from avantis_trader_sdk.core.dto.internal.metrics import EntityMetrics
from avantis_trader_sdk.core.dto.io.market import (
    OpenInterest,
    OpenInterestLimits,
    Skew,
    Utilization,
)
from avantis_trader_sdk.core.market._utils import gather_per_entity
from avantis_trader_sdk.core.market.metrics import derive_metrics
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.types import SIDE_LONG, SIDE_SHORT, GroupIndex
from avantis_trader_sdk.infra.rpc.ledger_client import LedgerClient

logger = PipelineLogger.get_logger("category_parameters", "market")


class CategoryAggregator:
    def __init__(self, ledger: LedgerClient, registry: PairRegistry) -> None:
        self._ledger = ledger
        self._registry = registry

    async def _group_max(self, group_index: GroupIndex, timeout: float | None) -> float:
        raw = await self._ledger.call(
            "PairStorage", "groupCollateral", group_index, True, timeout=timeout
        )
        return from_blockchain6(raw)

    async def _group_oi(self, group_index: GroupIndex, timeout: float | None) -> OpenInterest:
        long_raw, short_raw, max_oi = await asyncio.gather(
            self._ledger.call("PairStorage", "groupOI", group_index, SIDE_LONG, timeout=timeout),
            self._ledger.call("PairStorage", "groupOI", group_index, SIDE_SHORT, timeout=timeout),
            self._group_max(group_index, timeout),
        )
        return OpenInterest(
            long=from_blockchain6(long_raw),
            short=from_blockchain6(short_raw),
            max=max_oi,
        )

    async def get_oi_limits(
        self, timeout: float | None = None
    ) -> dict[GroupIndex, OpenInterestLimits]:
        """그룹별 OI 한도 (long/short 동일 한도)"""
        groups = await self._registry.get_group_indexes(timeout)

        async def fetch(group_index: GroupIndex) -> OpenInterestLimits:
            max_oi = await self._group_max(group_index, timeout)
            return OpenInterestLimits(index=group_index, max_long=max_oi, max_short=max_oi)

        return await gather_per_entity(groups, fetch, entity="group_oi_limits", logger=logger)

    async def get_metrics(self, timeout: float | None = None) -> dict[GroupIndex, EntityMetrics]:
        """그룹별 OI + 파생 지표 (그룹당 OI 조회 1회)"""
        groups = await self._registry.get_group_indexes(timeout)

        async def fetch(group_index: GroupIndex) -> EntityMetrics:
            oi = await self._group_oi(group_index, timeout)
            return derive_metrics(oi, entity="group", key=group_index)

        return await gather_per_entity(groups, fetch, entity="group_oi", logger=logger)

    async def get_oi(self, timeout: float | None = None) -> dict[GroupIndex, OpenInterest]:
        metrics = await self.get_metrics(timeout)
        return {g: m.open_interest for g, m in metrics.items()}

    async def get_utilization(
        self, timeout: float | None = None
    ) -> dict[GroupIndex, Utilization]:
        metrics = await self.get_metrics(timeout)
        return {g: m.utilization for g, m in metrics.items()}

    async def get_skew(self, timeout: float | None = None) -> dict[GroupIndex, Skew]:
        metrics = await self.get_metrics(timeout)
        return {g: m.skew for g, m in metrics.items()}
