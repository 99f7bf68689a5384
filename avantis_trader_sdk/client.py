"""
TraderClient - SDK 진입점

DI 컨테이너에서 컴포넌트를 꺼내 한 객체로 노출합니다.

    async with TraderClient("https://mainnet.base.org") as client:
        snapshot = await client.snapshot.get_snapshot()
"""

from __future__ import annotations

from dependency_injector import providers

from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.config.containers import ApplicationContainer
from avantis_trader_sdk.config.settings import rpc_settings
from avantis_trader_sdk.core.dto.io.market import Snapshot
from avantis_trader_sdk.core.feed.feed_client import PriceFeedClient
from avantis_trader_sdk.core.market.asset_parameters import AssetAggregator
from avantis_trader_sdk.core.market.blended import BlendedAggregator
from avantis_trader_sdk.core.market.category_parameters import CategoryAggregator
from avantis_trader_sdk.core.market.fee_parameters import FeeAggregator
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.market.snapshot import SnapshotBuilder
from avantis_trader_sdk.core.market.trade import TradeBuilder
from avantis_trader_sdk.core.market.trading_parameters import TradingParameters
from avantis_trader_sdk.core.types import Address
from avantis_trader_sdk.infra.rpc.ledger_client import LedgerClient

logger = PipelineLogger.get_logger("trader_client", "client")


class TraderClient:
    """시장 데이터 조회 + 트랜잭션 페이로드 생성 + 가격 피드 통합 클라이언트"""

    def __init__(
        self,
        provider_url: str | None = None,
        *,
        ledger: LedgerClient | None = None,
        container: ApplicationContainer | None = None,
    ) -> None:
        """
        Args:
            provider_url: JSON-RPC 엔드포인트 (미지정 시 RPC_PROVIDER_URL 설정값)
            ledger: 원장 클라이언트 직접 주입 (테스트/커스텀 프로바이더)
            container: 미리 구성한 컨테이너
        """
        self.container = container or ApplicationContainer()

        if provider_url is not None:
            self.container.infra.rpc_config.override(
                providers.Object(rpc_settings.model_copy(update={"provider_url": provider_url}))
            )
        if ledger is not None:
            self.container.infra.ledger.override(providers.Object(ledger))

        market = self.container.market
        self.ledger: LedgerClient = self.container.infra.ledger()
        self.pairs_cache: PairRegistry = market.registry()
        self.category_params: CategoryAggregator = market.categories()
        self.asset_params: AssetAggregator = market.assets()
        self.fee_params: FeeAggregator = market.fees()
        self.blended_params: BlendedAggregator = market.blended()
        self.trading_params: TradingParameters = market.trading()
        self.trade: TradeBuilder = market.trade()
        self.snapshot: SnapshotBuilder = market.snapshot()
        self._feed_client: PriceFeedClient | None = None

    @property
    def feed_client(self) -> PriceFeedClient:
        """가격 피드 클라이언트 (처음 접근할 때 생성)"""
        if self._feed_client is None:
            self._feed_client = self.container.feed.feed_client()
        return self._feed_client

    async def get_snapshot(
        self, trader: Address | None = None, timeout: float | None = None
    ) -> Snapshot:
        return await self.snapshot.get_snapshot(trader, timeout)

    async def aclose(self) -> None:
        """피드 연결, HTTP 세션, 프로바이더 정리"""
        if self._feed_client is not None:
            await self._feed_client.close()
        await self.container.infra.http().close()
        await self.ledger.close()
        logger.info("TraderClient 종료")

    async def __aenter__(self) -> TraderClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
