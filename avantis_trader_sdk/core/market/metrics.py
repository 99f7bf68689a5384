"""
OI 파생 지표 계산 (순수 함수)

utilization = side / max * 100   (max == 0 이면 0)
skew        = long / (long + short)   (합이 0 이면 0.5)

utilization과 skew는 별도로 조회하지 않고 항상 같은 OpenInterest에서 계산합니다.
"""

from __future__ import annotations

from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.core.dto.internal.metrics import EntityMetrics
from avantis_trader_sdk.core.dto.io.market import OpenInterest, Skew, Utilization

logger = PipelineLogger.get_logger("metrics", "market")


def compute_utilization(oi: OpenInterest) -> Utilization:
    if oi.max <= 0:
        return Utilization(utilization_long=0.0, utilization_short=0.0)
    return Utilization(
        utilization_long=oi.long / oi.max * 100,
        utilization_short=oi.short / oi.max * 100,
    )


def compute_skew(oi: OpenInterest) -> Skew:
    total = oi.long + oi.short
    if total <= 0:
        return Skew(skew=0.5)
    # 부동소수 오차로 [0, 1]을 벗어나지 않도록 고정
    return Skew(skew=min(1.0, max(0.0, oi.long / total)))


def derive_metrics(oi: OpenInterest, *, entity: str, key: int) -> EntityMetrics:
    """OI 한 건 → (OI, utilization, skew)

    long + short > max 는 보정하지 않고 경고만 남깁니다.
    """
    if oi.exceeds_max:
        logger.warning(
            "OI가 최대치를 초과함",
            entity=entity,
            key=key,
            long=oi.long,
            short=oi.short,
            max=oi.max,
        )
    return EntityMetrics(
        open_interest=oi,
        utilization=compute_utilization(oi),
        skew=compute_skew(oi),
    )
