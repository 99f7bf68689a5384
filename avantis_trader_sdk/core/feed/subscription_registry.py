from __future__ import annotations

from typing import Iterable, Literal, Mapping

from avantis_trader_sdk.common.serde import to_text
from avantis_trader_sdk.core.dto.internal.feed import CallbackHandle
from avantis_trader_sdk.core.dto.io.feed import normalize_feed_id
from avantis_trader_sdk.core.types import FeedId, PairName, PriceUpdateCallback


class SubscriptionRegistry:
    """가격 피드 구독 상태 전담 클래스

    책임:
    - 피드 ID별 옵저버 핸들 목록 (등록 순서 유지)
    - 페어 이름 → 피드 ID 테이블
    - 구독/해지 메시지 생성

    연결 여부와 무관하게 프로세스 수명 동안 유지되며, 재접속 후 그대로 재전송됩니다.
    """

    def __init__(self) -> None:
        self._observers: dict[FeedId, list[CallbackHandle]] = {}
        self._pair_feeds: dict[PairName, FeedId] = {}

    def add(self, feed_id: FeedId, callback: PriceUpdateCallback) -> tuple[CallbackHandle, bool]:
        """옵저버 추가 → (handle, 이 피드의 첫 옵저버인지)"""
        key = normalize_feed_id(feed_id)
        handle = CallbackHandle(feed_id=key, callback=callback)
        handles = self._observers.setdefault(key, [])
        handles.append(handle)
        return handle, len(handles) == 1

    def remove(self, handle: CallbackHandle) -> bool:
        """핸들 제거 (없던 핸들이면 False)"""
        handles = self._observers.get(handle.feed_id)
        if not handles or handle not in handles:
            return False
        handles.remove(handle)
        if not handles:
            del self._observers[handle.feed_id]
        return True

    def remove_callback(self, feed_id: FeedId, callback: PriceUpdateCallback) -> bool:
        """같은 콜백으로 등록된 첫 핸들 제거"""
        key = normalize_feed_id(feed_id)
        for handle in self._observers.get(key, []):
            if handle.callback is callback or handle.callback == callback:
                return self.remove(handle)
        return False

    def observers(self, feed_id: FeedId) -> tuple[CallbackHandle, ...]:
        # 디스패치 중 등록/해제가 일어나도 안전하도록 복사본 반환
        return tuple(self._observers.get(normalize_feed_id(feed_id), ()))

    def has_observers(self, feed_id: FeedId) -> bool:
        return bool(self._observers.get(normalize_feed_id(feed_id)))

    def active_feeds(self) -> list[FeedId]:
        """옵저버가 하나 이상 있는 피드 ID (등록 순서)"""
        return [feed_id for feed_id, handles in self._observers.items() if handles]

    def load_pair_feeds(self, pair_feeds: Mapping[PairName, FeedId]) -> None:
        """페어 → 피드 테이블 전체 교체"""
        self._pair_feeds = dict(pair_feeds)

    def feed_for_pair(self, pair_name: PairName) -> FeedId | None:
        return self._pair_feeds.get(pair_name)

    @property
    def pair_feeds(self) -> dict[PairName, FeedId]:
        return dict(self._pair_feeds)

    @staticmethod
    def build_message(
        message_type: Literal["subscribe", "unsubscribe"], feed_ids: Iterable[FeedId]
    ) -> str:
        """구독 메시지 JSON 직렬화 (orjson 사용)"""
        return to_text({"type": message_type, "ids": [normalize_feed_id(f) for f in feed_ids]})
