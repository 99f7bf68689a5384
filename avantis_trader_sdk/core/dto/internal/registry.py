from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from avantis_trader_sdk.core.dto.io.market import PairInfo
from avantis_trader_sdk.core.types import GroupIndex, PairIndex, PairName


@dataclass(slots=True, frozen=True, eq=False, repr=False, match_args=False, kw_only=True)
class PairCacheState:
    """페어 캐시 epoch (불변)

    pairs와 name_index는 항상 같은 fetch에서 만들어지며, 레지스트리는
    이 객체 전체를 한 번에 교체합니다 (필드 단위 변경 없음).
    """

    pairs: Mapping[PairIndex, PairInfo]
    name_index: Mapping[PairName, PairIndex]
    epoch: int = 0
    group_indexes: tuple[GroupIndex, ...] = field(default=())

    @classmethod
    def build(cls, pairs: dict[PairIndex, PairInfo], epoch: int) -> PairCacheState:
        """정렬된 pairs 로부터 epoch 생성 (이름 중복 시 ValueError)"""
        ordered = dict(sorted(pairs.items()))
        name_index: dict[PairName, PairIndex] = {}
        for index, info in ordered.items():
            name = info.name
            if name in name_index:
                raise ValueError(
                    f"duplicate pair name {name!r} at index {index} "
                    f"(already at {name_index[name]})"
                )
            name_index[name] = index

        groups = tuple(sorted({info.group_index for info in ordered.values()}))
        return cls(
            pairs=MappingProxyType(ordered),
            name_index=MappingProxyType(name_index),
            epoch=epoch,
            group_indexes=groups,
        )

    def pairs_in_group(self, group_index: GroupIndex) -> list[PairIndex]:
        return [i for i, info in self.pairs.items() if info.group_index == group_index]

    def __len__(self) -> int:
        return len(self.pairs)
