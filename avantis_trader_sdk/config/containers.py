"""
Dependency Injection Containers

SDK의 모든 컴포넌트 의존성을 관리하는 DI 컨테이너를 정의합니다.

아키텍처:
- InfrastructureContainer: 원장(RPC) 클라이언트, HTTP 클라이언트 + Settings 주입
- MarketContainer: 페어 레지스트리, 집계기, 스냅샷, 트레이드 빌더
- FeedContainer: 실시간 가격 피드 클라이언트
- ApplicationContainer: 최상위 컨테이너 (TraderClient가 사용)

주요 패턴:
- Object Provider: settings.py 싱글톤 주입 (DI)
- Singleton: 레지스트리 캐시/연결처럼 공유해야 하는 컴포넌트
- Dependency: 상위 컨테이너에서 주입받는 의존성

테스트에서 원장 교체:
    container = ApplicationContainer()
    container.infra.ledger.override(providers.Object(FakeLedger(...)))
"""

from dependency_injector import containers, providers

from avantis_trader_sdk.config.settings import (
    contract_settings,
    feed_settings,
    market_settings,
    rpc_settings,
)
from avantis_trader_sdk.core.dto.internal.blend import BlendPolicy
from avantis_trader_sdk.core.feed.feed_client import PriceFeedClient
from avantis_trader_sdk.core.market.asset_parameters import AssetAggregator
from avantis_trader_sdk.core.market.blended import BlendedAggregator
from avantis_trader_sdk.core.market.category_parameters import CategoryAggregator
from avantis_trader_sdk.core.market.fee_parameters import FeeAggregator
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.market.snapshot import SnapshotBuilder
from avantis_trader_sdk.core.market.trade import TradeBuilder
from avantis_trader_sdk.core.market.trading_parameters import TradingParameters
from avantis_trader_sdk.infra.http.http_client import HttpJsonClient
from avantis_trader_sdk.infra.rpc.ledger_client import Web3LedgerClient


# ========================================
# 1. Infrastructure Container (인프라 레이어)
# ========================================
class InfrastructureContainer(containers.DeclarativeContainer):
    """인프라 컨테이너

    - 원장 클라이언트, HTTP 클라이언트를 싱글톤으로 공유
    - Settings: settings.py 싱글톤 주입 (DI)
    """

    # ===== Settings 주입 (DI) =====
    rpc_config = providers.Object(rpc_settings)
    contract_config = providers.Object(contract_settings)
    feed_config = providers.Object(feed_settings)

    ledger = providers.Singleton(
        Web3LedgerClient,
        rpc=rpc_config,
        contracts=contract_config,
    )

    http = providers.Singleton(
        HttpJsonClient,
        timeout=feed_config.provided.http_timeout,
    )


# ========================================
# 2. Market Container (시장 데이터 레이어)
# ========================================
class MarketContainer(containers.DeclarativeContainer):
    """시장 데이터 컨테이너

    PairRegistry는 페어 캐시의 유일한 writer이므로 반드시 Singleton 입니다.
    집계기들은 같은 레지스트리 인스턴스를 읽기 전용으로 공유합니다.
    """

    ledger = providers.Dependency()
    http = providers.Dependency()
    feed_config = providers.Dependency()

    market_config = providers.Object(market_settings)

    blend_policy = providers.Singleton(
        BlendPolicy,
        asset_weight=market_config.provided.blend_asset_weight,
    )

    registry = providers.Singleton(
        PairRegistry,
        ledger=ledger,
        http=http,
        feed_settings=feed_config,
    )

    categories = providers.Singleton(CategoryAggregator, ledger=ledger, registry=registry)
    assets = providers.Singleton(AssetAggregator, ledger=ledger, registry=registry)
    fees = providers.Singleton(FeeAggregator, ledger=ledger, registry=registry)

    blended = providers.Singleton(
        BlendedAggregator,
        registry=registry,
        assets=assets,
        categories=categories,
        policy=blend_policy,
    )

    trading = providers.Singleton(TradingParameters, ledger=ledger, registry=registry)
    trade = providers.Singleton(TradeBuilder, ledger=ledger, registry=registry)

    snapshot = providers.Factory(
        SnapshotBuilder,
        registry=registry,
        categories=categories,
        assets=assets,
        fees=fees,
        blended=blended,
        refresh_pairs=market_config.provided.refresh_pairs_on_snapshot,
    )


# ========================================
# 3. Feed Container (실시간 가격 레이어)
# ========================================
class FeedContainer(containers.DeclarativeContainer):
    """가격 피드 컨테이너

    연결/재접속 카운터/구독 상태는 PriceFeedClient 인스턴스가 독점합니다.
    """

    feed_config = providers.Dependency()
    http = providers.Dependency()

    feed_client = providers.Singleton(
        PriceFeedClient,
        settings=feed_config,
        http=http,
    )


# ========================================
# 4. Application Container (최상위)
# ========================================
class ApplicationContainer(containers.DeclarativeContainer):
    """SDK 최상위 컨테이너

    Features:
    - 모든 레이어의 컨테이너 통합
    - 인프라 provider override 한 번으로 하위 컴포넌트 전체 교체
    """

    infra = providers.Container(InfrastructureContainer)

    market = providers.Container(
        MarketContainer,
        ledger=infra.ledger,
        http=infra.http,
        feed_config=infra.feed_config,
    )

    feed = providers.Container(
        FeedContainer,
        feed_config=infra.feed_config,
        http=infra.http,
    )
