from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Literal

from avantis_trader_sdk.core.dto.io.feed import PriceFeedResponse
from avantis_trader_sdk.core.types import FeedId, PriceUpdateCallback

_handle_counter = itertools.count(1)


@dataclass(slots=True, frozen=True, eq=True, repr=True, match_args=False, kw_only=True)
class CallbackHandle:
    """옵저버 등록 핸들

    같은 콜백을 여러 번 등록해도 handle은 각각 다르므로
    해제 대상이 모호하지 않습니다.
    """

    feed_id: FeedId
    callback: PriceUpdateCallback = field(compare=False, repr=False)
    token: int = field(default_factory=lambda: next(_handle_counter))


PriceUpdateKind = Literal["update", "ignored", "malformed"]


@dataclass(slots=True, frozen=True, eq=False, repr=False, match_args=False, kw_only=True)
class PriceUpdateDecision:
    """수신 메시지 판정 결과

    kind:
        update    - 유효한 가격 업데이트 (feed 채워짐)
        ignored   - price_update 가 아닌 메시지 (구독 응답 등)
        malformed - price_update 지만 형태가 잘못됨 (reason 채워짐)
    """

    kind: PriceUpdateKind
    feed: PriceFeedResponse | None = None
    message_type: str | None = None
    reason: str | None = None
