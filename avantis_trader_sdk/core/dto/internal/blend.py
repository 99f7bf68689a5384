from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class BlendPolicy:
    """자산/카테고리 블렌딩 정책

    value = asset_weight * asset + (1 - asset_weight) * category
    가중치가 [0, 1] 이므로 결과는 항상 두 원값 사이에 있습니다.
    """

    asset_weight: float = 0.5

    def __post_init__(self) -> None:
        if not 0.0 <= self.asset_weight <= 1.0:
            raise ValueError(f"asset_weight must be within [0, 1], got {self.asset_weight}")

    @property
    def category_weight(self) -> float:
        return 1.0 - self.asset_weight

    def apply(self, asset_value: float, category_value: float) -> float:
        return self.asset_weight * asset_value + self.category_weight * category_value
