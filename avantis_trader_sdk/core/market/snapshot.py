"""
시장 스냅샷 빌더

1) 레지스트리 epoch / 그룹 인덱스 확정
2) 카테고리 지표, 자산 지표, 마진 수수료, 뎁스를 동시에 조회
   (호출 단위 실패 시 나머지를 취소하고 빌드 실패)
   블렌딩 값은 같은 자산/카테고리 조회 결과로 계산
3) group → pair 순서로 조립

조립 시점에 레지스트리 현재 epoch에서 사라진 페어는 건너뜁니다.
"""

from __future__ import annotations

import time

from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.core.dto.internal.registry import PairCacheState
from avantis_trader_sdk.core.dto.io.market import Group, PairData, Snapshot
from avantis_trader_sdk.core.market._utils import gather_or_cancel
from avantis_trader_sdk.core.market.asset_parameters import AssetAggregator
from avantis_trader_sdk.core.market.blended import BlendedAggregator, blend
from avantis_trader_sdk.core.market.category_parameters import CategoryAggregator
from avantis_trader_sdk.core.market.fee_parameters import FeeAggregator
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.types import Address, GroupIndex, PairName, group_key

logger = PipelineLogger.get_logger("snapshot", "market")


class SnapshotBuilder:
    def __init__(
        self,
        registry: PairRegistry,
        categories: CategoryAggregator,
        assets: AssetAggregator,
        fees: FeeAggregator,
        blended: BlendedAggregator,
        refresh_pairs: bool = False,
    ) -> None:
        self._registry = registry
        self._categories = categories
        self._assets = assets
        self._fees = fees
        self._blended = blended
        self._refresh_pairs = refresh_pairs

    def _assembly_state(self, captured: PairCacheState) -> PairCacheState:
        """조립 기준 epoch: 레지스트리 현재 epoch (무효화된 상태면 조회 시점 epoch)"""
        current = self._registry.cached_state
        return current if current is not None else captured

    async def get_snapshot(
        self, trader: Address | None = None, timeout: float | None = None
    ) -> Snapshot:
        started = time.perf_counter()

        state = await self._registry.resolve(force_refresh=self._refresh_pairs, timeout=timeout)

        category, asset, fees, depth = await gather_or_cancel(
            self._categories.get_metrics(timeout),
            self._assets.get_metrics(timeout),
            self._fees.get_margin_fee(trader, timeout),
            self._assets.get_one_percent_depth(timeout),
        )
        blended = blend(self._blended.policy, state, asset, category)

        current = self._assembly_state(state)
        groups: dict[str, Group] = {}
        skipped = 0
        for group_index in state.group_indexes:
            pairs: dict[PairName, PairData] = {}
            for pair_index in state.pairs_in_group(group_index):
                info = current.pairs.get(pair_index)
                if info is None or info.name != state.pairs[pair_index].name:
                    skipped += 1
                    continue

                asset_metrics = asset.get(pair_index)
                mixed = blended.get(pair_index)
                pairs[info.name] = PairData(
                    pair_info=info,
                    open_interest=asset_metrics.open_interest if asset_metrics else None,
                    utilization=mixed[0] if mixed else None,
                    skew=mixed[1] if mixed else None,
                    fee=fees.get(pair_index),
                    depth=depth.get(pair_index),
                    spread=info.spread.min,
                )

            category_metrics = category.get(group_index)
            groups[group_key(group_index)] = Group(
                group_index=group_index,
                pairs=pairs,
                open_interest=category_metrics.open_interest if category_metrics else None,
                utilization=category_metrics.utilization if category_metrics else None,
                skew=category_metrics.skew if category_metrics else None,
            )

        if skipped:
            logger.warning("조립 시점에 사라진 페어 제외", skipped=skipped, epoch=current.epoch)

        logger.info(
            "스냅샷 생성 완료",
            groups=len(groups),
            pairs=len(state) - skipped,
            epoch=state.epoch,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return Snapshot(groups=groups)

    async def get_group_snapshot(
        self, group_index: GroupIndex, trader: Address | None = None, timeout: float | None = None
    ) -> Group | None:
        snapshot = await self.get_snapshot(trader, timeout)
        return snapshot.groups.get(group_key(group_index))

    async def get_pair_snapshot(
        self, pair_name: PairName, trader: Address | None = None, timeout: float | None = None
    ) -> PairData | None:
        snapshot = await self.get_snapshot(trader, timeout)
        for group in snapshot.groups.values():
            if pair_name in group.pairs:
                return group.pairs[pair_name]
        return None
