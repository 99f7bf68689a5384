"""시장 데이터 DTO

모든 값은 표시 단위(display unit)로 변환된 뒤 담깁니다 (decimals 변환은 집계기 책임).
스냅샷은 매 빌드마다 새로 만들어지고, 반환 이후에는 변경할 수 없습니다.
"""

from __future__ import annotations

from pydantic import Field, NonNegativeFloat

from avantis_trader_sdk.core.dto.io._base import BaseIOModelDTO
from avantis_trader_sdk.core.types import GroupKey, PairName


class Spread(BaseIOModelDTO):
    """페어 스프레드 (퍼센트)"""

    min: NonNegativeFloat
    max: NonNegativeFloat


class PairInfo(BaseIOModelDTO):
    """페어 메타데이터 (캐시 epoch 내에서 불변)"""

    from_: str = Field(alias="from")
    to: str
    spread: Spread
    group_index: int = Field(ge=0)
    fee_index: int = Field(ge=0)
    max_leverage: NonNegativeFloat
    max_open_interest_usdc: NonNegativeFloat

    @property
    def name(self) -> PairName:
        return f"{self.from_}/{self.to}"


class OpenInterest(BaseIOModelDTO):
    """미결제약정 (USDC)

    long + short <= max 는 강제하지 않습니다. 위반 여부는 exceeds_max로 노출합니다.
    """

    long: NonNegativeFloat
    short: NonNegativeFloat
    max: NonNegativeFloat

    @property
    def total(self) -> float:
        return self.long + self.short

    @property
    def exceeds_max(self) -> bool:
        return self.total > self.max


class OpenInterestLimits(BaseIOModelDTO):
    """그룹/페어별 OI 한도 (USDC), index는 그룹 또는 페어 인덱스"""

    index: int = Field(ge=0)
    max_long: NonNegativeFloat
    max_short: NonNegativeFloat


class Utilization(BaseIOModelDTO):
    """OI 사용률 (퍼센트, max == 0이면 0)"""

    utilization_long: NonNegativeFloat
    utilization_short: NonNegativeFloat


class Skew(BaseIOModelDTO):
    """롱 비중 long / (long + short), 합이 0이면 0.5"""

    skew: float = Field(ge=0.0, le=1.0)


class Fee(BaseIOModelDTO):
    """마진 수수료율 (퍼센트)"""

    fee_p: NonNegativeFloat


class Depth(BaseIOModelDTO):
    """가격 ±1% 구간 유동성 (USDC)"""

    one_percent_depth_above_usdc: NonNegativeFloat
    one_percent_depth_below_usdc: NonNegativeFloat


class PairData(BaseIOModelDTO):
    """스냅샷 내 페어 단위 데이터

    pair_info 외 필드는 부분 집계 실패 시 None 입니다.
    utilization / skew는 자산-카테고리 블렌딩 값입니다.
    """

    pair_info: PairInfo
    open_interest: OpenInterest | None = None
    utilization: Utilization | None = None
    skew: Skew | None = None
    fee: Fee | None = None
    depth: Depth | None = None
    spread: float | None = None


class Group(BaseIOModelDTO):
    """스냅샷 내 카테고리(그룹) 단위 데이터"""

    group_index: int = Field(ge=0)
    pairs: dict[PairName, PairData] = Field(default_factory=dict)
    open_interest: OpenInterest | None = None
    utilization: Utilization | None = None
    skew: Skew | None = None


class Snapshot(BaseIOModelDTO):
    """전체 시장 스냅샷 ("group_{index}" → Group)"""

    groups: dict[GroupKey, Group] = Field(default_factory=dict)


class LossProtectionInfo(BaseIOModelDTO):
    """손실 보호 티어/비율"""

    tier: int = Field(ge=0)
    percentage: NonNegativeFloat
    amount: NonNegativeFloat
