"""
자산-카테고리 블렌딩

value = w * asset + (1 - w) * category   (w = BlendPolicy.asset_weight)

페어의 자산 값 또는 소속 그룹의 카테고리 값 중 하나라도 없으면 블렌딩 값도 없습니다.
"""

from __future__ import annotations

from typing import Mapping

from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.core.dto.internal.blend import BlendPolicy
from avantis_trader_sdk.core.dto.internal.metrics import EntityMetrics
from avantis_trader_sdk.core.dto.internal.registry import PairCacheState
from avantis_trader_sdk.core.dto.io.market import Skew, Utilization
from avantis_trader_sdk.core.market._utils import gather_or_cancel
from avantis_trader_sdk.core.market.asset_parameters import AssetAggregator
from avantis_trader_sdk.core.market.category_parameters import CategoryAggregator
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.types import GroupIndex, PairIndex

logger = PipelineLogger.get_logger("blended", "market")


def blend_utilization(
    policy: BlendPolicy, asset: Utilization, category: Utilization
) -> Utilization:
    return Utilization(
        utilization_long=policy.apply(asset.utilization_long, category.utilization_long),
        utilization_short=policy.apply(asset.utilization_short, category.utilization_short),
    )


def blend_skew(policy: BlendPolicy, asset: Skew, category: Skew) -> Skew:
    return Skew(skew=min(1.0, max(0.0, policy.apply(asset.skew, category.skew))))


def blend(
    policy: BlendPolicy,
    state: PairCacheState,
    asset: Mapping[PairIndex, EntityMetrics],
    category: Mapping[GroupIndex, EntityMetrics],
) -> dict[PairIndex, tuple[Utilization, Skew]]:
    """같은 조회 결과로부터 페어별 (블렌딩 utilization, 블렌딩 skew) 계산"""
    blended: dict[PairIndex, tuple[Utilization, Skew]] = {}
    for pair_index, info in state.pairs.items():
        asset_metrics = asset.get(pair_index)
        category_metrics = category.get(info.group_index)
        if asset_metrics is None or category_metrics is None:
            continue
        blended[pair_index] = (
            blend_utilization(policy, asset_metrics.utilization, category_metrics.utilization),
            blend_skew(policy, asset_metrics.skew, category_metrics.skew),
        )
    return blended


class BlendedAggregator:
    def __init__(
        self,
        registry: PairRegistry,
        assets: AssetAggregator,
        categories: CategoryAggregator,
        policy: BlendPolicy | None = None,
    ) -> None:
        self._registry = registry
        self._assets = assets
        self._categories = categories
        self.policy = policy or BlendPolicy()

    async def _blended(self, timeout: float | None) -> dict[PairIndex, tuple[Utilization, Skew]]:
        state = await self._registry.resolve(timeout=timeout)
        asset, category = await gather_or_cancel(
            self._assets.get_metrics(timeout),
            self._categories.get_metrics(timeout),
        )
        result = blend(self.policy, state, asset, category)
        if len(result) < len(state):
            logger.debug(
                "일부 페어 블렌딩 생략",
                blended=len(result),
                pairs=len(state),
            )
        return result

    async def get_blended_utilization(
        self, timeout: float | None = None
    ) -> dict[PairIndex, Utilization]:
        return {i: u for i, (u, _) in (await self._blended(timeout)).items()}

    async def get_blended_skew(self, timeout: float | None = None) -> dict[PairIndex, Skew]:
        return {i: s for i, (_, s) in (await self._blended(timeout)).items()}
