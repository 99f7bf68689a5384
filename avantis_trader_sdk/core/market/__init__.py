"""
시장 데이터 집계 모듈

주요 구성:
- PairRegistry: 페어 메타데이터 캐시 (epoch 단위 교체)
- CategoryAggregator / AssetAggregator / FeeAggregator: 원장 조회 집계
- BlendedAggregator: 자산-카테고리 블렌딩
- SnapshotBuilder: 전체 시장 스냅샷
- TradingParameters / TradeBuilder: 트레이드 파라미터 조회, 서명 전 트랜잭션 생성
"""

from __future__ import annotations

from .asset_parameters import AssetAggregator
from .blended import BlendedAggregator
from .category_parameters import CategoryAggregator
from .fee_parameters import FeeAggregator
from .metrics import compute_skew, compute_utilization
from .pairs_cache import PairRegistry
from .snapshot import SnapshotBuilder
from .trade import TradeBuilder
from .trading_parameters import TradingParameters

__all__ = [
    "PairRegistry",
    "CategoryAggregator",
    "AssetAggregator",
    "FeeAggregator",
    "BlendedAggregator",
    "SnapshotBuilder",
    "TradingParameters",
    "TradeBuilder",
    "compute_utilization",
    "compute_skew",
]
