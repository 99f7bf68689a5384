"""
실시간 가격 피드 모듈

주요 구성:
- PriceFeedClient: 스트림 연결/재접속/옵저버 디스패치
- parse_price_update: 수신 메시지 판정 (순수 함수)
- SubscriptionRegistry: 피드별 옵저버, 페어 → 피드 테이블
"""

from __future__ import annotations

from .feed_client import PriceFeedClient
from .subscription_registry import SubscriptionRegistry
from .validation import parse_price_update

__all__ = [
    "PriceFeedClient",
    "SubscriptionRegistry",
    "parse_price_update",
]
