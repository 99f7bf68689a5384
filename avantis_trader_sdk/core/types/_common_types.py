from __future__ import annotations

from enum import Enum
from typing import Any, Final, Literal, TypeAlias, assert_never

# 공통 타입/별칭을 한곳에 모읍니다.
# - 코어 계층 어디서나 재사용 가능한 최소 단위만 정의합니다.
# - 원격 응답 스키마(DTO) 세부는 core/dto/io에 두고, 여기에는 기반 타입만 둡니다.

PairIndex: TypeAlias = int
GroupIndex: TypeAlias = int
PairName: TypeAlias = str  # "BTC/USD"
FeedId: TypeAlias = str  # Pyth price feed id (0x 접두 hex)
GroupKey: TypeAlias = str  # "group_{index}"
Address: TypeAlias = str
ContractName: TypeAlias = Literal[
    "TradingStorage",
    "PairStorage",
    "PairInfos",
    "PriceAggregator",
    "USDC",
    "Trading",
    "Multicall",
    "Referral",
]
RawMessage: TypeAlias = str | bytes | dict[str, Any]

# 온체인 OI 조회 시 side 인자 (0 = long, 1 = short)
SIDE_LONG: Final[int] = 0
SIDE_SHORT: Final[int] = 1


class FeedConnectionState(Enum):
    """가격 피드 연결 상태 Enum.

    disconnected → connecting → connected → disconnected (close/error)
    재접속 대기 중에는 backoff 상태를 거칩니다.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BACKOFF = "backoff"


def feed_state_format(state: FeedConnectionState) -> str:
    """상태 로깅 포맷터: Enum 분기 완전탐색 보장."""
    match state:
        case FeedConnectionState.DISCONNECTED:
            return "disconnected"
        case FeedConnectionState.CONNECTING:
            return "connecting"
        case FeedConnectionState.CONNECTED:
            return "connected"
        case FeedConnectionState.BACKOFF:
            return "backoff"
        case _:
            assert_never(state)


def group_key(group_index: GroupIndex) -> GroupKey:
    """스냅샷 그룹 키 생성 ("group_{index}")"""
    return f"group_{group_index}"
