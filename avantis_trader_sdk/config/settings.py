"""통합 Settings 모듈 - 환경변수 기반

이 모듈의 역할:
    1. 코드에 합리적인 기본값 제공 (Base 메인넷 + Pyth Hermes)
    2. 환경변수로 오버라이드 (우선순위 높음)
    3. 타입 안전성 보장 (Pydantic 자동 검증)

설정 우선순위:
    1. 환경변수 (최우선) - export RPC_PROVIDER_URL=...
    2. .env 파일 - 작업 디렉터리의 .env
    3. 코드 기본값 (settings.py 내부)

주의:
    컴포넌트는 이 모듈의 싱글톤을 직접 읽지 않습니다.
    DI 컨테이너(config/containers.py)가 생성 시점에 설정 객체를 주입합니다.
"""

from __future__ import annotations

import re

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def settings_config(prefix: str) -> SettingsConfigDict:
    """환경변수 + .env 통합 설정

    Args:
        prefix: 환경변수 접두사 (예: RPC_, FEED_)

    Returns:
        Pydantic 설정 딕셔너리
    """
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class RpcSettings(BaseSettings):
    """온체인 RPC 설정

    환경변수 오버라이드:
        RPC_PROVIDER_URL: JSON-RPC 엔드포인트 (기본: https://mainnet.base.org)
        RPC_CALL_TIMEOUT: 컨트랙트 read 1건당 데드라인 (초, 기본: 10)
    """

    provider_url: str = "https://mainnet.base.org"
    call_timeout: float = 10.0

    model_config = settings_config("RPC_")


class ContractSettings(BaseSettings):
    """컨트랙트 주소 테이블

    배포 네트워크마다 다르므로 기본값은 zero address 입니다.
    CONTRACT_PAIR_STORAGE=0x... 형태로 오버라이드합니다.
    """

    trading_storage: str = ZERO_ADDRESS
    pair_storage: str = ZERO_ADDRESS
    pair_infos: str = ZERO_ADDRESS
    price_aggregator: str = ZERO_ADDRESS
    usdc: str = ZERO_ADDRESS
    trading: str = ZERO_ADDRESS
    multicall: str = ZERO_ADDRESS
    referral: str = ZERO_ADDRESS

    model_config = settings_config("CONTRACT_")

    def address_of(self, contract_name: str) -> str:
        """컨트랙트 이름(PairStorage, pair_storage 모두 허용)으로 주소 조회"""
        fields = type(self).model_fields
        key = contract_name.lower()
        if key not in fields:
            key = re.sub(r"(?<!^)(?=[A-Z])", "_", contract_name).lower()
        if key not in fields:
            raise KeyError(f"unknown contract: {contract_name}")
        return getattr(self, key)


class FeedSettings(BaseSettings):
    """실시간 가격 피드 설정

    환경변수 오버라이드 (모든 타이밍 설정은 초 단위):
        FEED_WS_URL: 스트리밍 엔드포인트 (기본: Pyth Hermes ws)
        FEED_HTTP_URL: 단발성 HTTP 조회 엔드포인트
        FEED_SOCKET_API_URL: 페어 정보 REST 문서
        FEED_RECONNECT_BASE_DELAY: 재접속 기본 지연 (기본: 1.0초)
        FEED_RECONNECT_MAX_ATTEMPTS: 재접속 최대 시도 횟수 (기본: 5회)
        FEED_OPEN_TIMEOUT: 연결 수립 타임아웃 (기본: 10초)
        FEED_HTTP_TIMEOUT: HTTP 요청 타임아웃 (기본: 10초)
    """

    ws_url: str = "wss://hermes.pyth.network/ws"
    http_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    socket_api_url: str = "https://socket-api-pub.avantisfi.com/socket-api/v1/data"
    reconnect_base_delay: float = 1.0
    reconnect_max_attempts: int = 5
    open_timeout: float = 10.0
    http_timeout: float = 10.0

    model_config = settings_config("FEED_")


class MarketSettings(BaseSettings):
    """시장 데이터 집계 설정

    환경변수 오버라이드:
        MARKET_BLEND_ASSET_WEIGHT: 블렌딩 시 자산(페어) 가중치 (0~1, 기본: 0.5)
        MARKET_REFRESH_PAIRS_ON_SNAPSHOT: 스냅샷마다 페어 캐시 강제 갱신 (기본: false)
    """

    blend_asset_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    refresh_pairs_on_snapshot: bool = False

    model_config = settings_config("MARKET_")


class LoggingSettings(BaseSettings):
    """로깅 설정

    환경변수 오버라이드:
        LOG_LEVEL: 로깅 레벨 (기본: INFO)
        LOG_TO_FILE: 파일 로깅 여부 (라이브러리이므로 기본: false)
        LOG_DIR: 파일 로깅 디렉터리 (기본: logs)
    """

    level: str = "INFO"
    to_file: bool = False
    to_console: bool = True
    dir: str = "logs"

    model_config = settings_config("LOG_")


# ========================================
# 설정 인스턴스 (싱글톤)
# ========================================

rpc_settings = RpcSettings()
contract_settings = ContractSettings()
feed_settings = FeedSettings()
market_settings = MarketSettings()
logging_settings = LoggingSettings()
