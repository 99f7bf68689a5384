from __future__ import annotations

from dataclasses import dataclass

from avantis_trader_sdk.core.dto.io.market import OpenInterest, Skew, Utilization


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class EntityMetrics:
    """그룹/페어 한 개의 OI 파생 지표 (하나의 OI 조회에서 계산)"""

    open_interest: OpenInterest
    utilization: Utilization
    skew: Skew
