from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeAlias, Union

if TYPE_CHECKING:
    from avantis_trader_sdk.core.dto.io.feed import PriceFeedResponse

# 가격 업데이트 옵저버 (동기/비동기 모두 허용)
PriceUpdateCallback: TypeAlias = Union[
    Callable[["PriceFeedResponse"], None],
    Callable[["PriceFeedResponse"], Awaitable[None]],
]

# 연결 훅
ErrorHook: TypeAlias = Callable[[BaseException], Any]
CloseHook: TypeAlias = Callable[[], Any]

# 재접속 대기 함수 (테스트에서 결정적 스케줄러로 교체)
SleepFunc: TypeAlias = Callable[[float], Awaitable[None]]

# 웹소켓 연결 팩토리 (기본: websockets.connect)
Connector: TypeAlias = Callable[[str], Awaitable[Any]]

SyncOrAsyncCallable = Union[Callable[..., Any], Callable[..., Awaitable[Any]]]
