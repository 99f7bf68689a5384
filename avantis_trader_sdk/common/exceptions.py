"""SDK 예외 계층과 선언적 분류 규칙

경계(infra) 계층은 라이브러리 예외(web3, aiohttp, websockets, pydantic)를
아래 계층으로 변환해서 올리고, 상위 계층은 classify_exception()으로
(ErrorKind, retryable)을 얻어 로깅/정책 판단에 사용합니다.
"""

from __future__ import annotations

import asyncio

from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from avantis_trader_sdk.core.dto.internal.common import RuleDomain
from avantis_trader_sdk.core.types import ErrorCategory, ErrorKind


class SdkError(Exception):
    """SDK 기본 예외"""

    kind: ErrorKind = ErrorKind.UNKNOWN


class RemoteUnreachableError(SdkError):
    """원격(RPC/HTTP/스트림) 연결 실패"""

    kind = ErrorKind.REMOTE_UNREACHABLE


class RemoteTimeoutError(RemoteUnreachableError):
    """데드라인 초과 - 실패한 read와 동일하게 취급합니다."""


class FeedConnectionError(RemoteUnreachableError):
    """가격 스트림 연결 수립 실패"""


class MalformedResponseError(SdkError):
    """응답 형태/스키마 불일치"""

    kind = ErrorKind.MALFORMED_RESPONSE


class PairNotFoundError(SdkError):
    """현재 캐시에 없는 페어 (트랜잭션 빌더처럼 값이 반드시 필요한 경로에서만 발생)"""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, pair: str | int) -> None:
        super().__init__(f"pair {pair} not found")
        self.pair = pair


class ReconnectExhaustedError(SdkError):
    """재접속 최대 시도 횟수 초과 - 호출자가 connect()를 다시 호출해야 합니다."""

    kind = ErrorKind.RECONNECT_EXHAUSTED

    def __init__(self, attempts: int) -> None:
        super().__init__(f"max reconnect attempts reached ({attempts})")
        self.attempts = attempts


# 역직렬화/스키마 오류 (모든 경계 공통)
DESERIALIZATION_ERRORS = (
    ValidationError,
    ValueError,
    TypeError,
    KeyError,
)

# 네트워크/연결 (재시도 대상)
NETWORK_EXCEPTIONS = (
    asyncio.TimeoutError,
    InvalidStatus,
    ConnectionClosed,
    WebSocketException,
    ConnectionError,
    OSError,
)


# 규칙은 "구체 → 포괄" 순서를 유지합니다 (선언 순서가 매칭 우선순위).
RULES: list[RuleDomain] = [
    RuleDomain(exc=RemoteTimeoutError, result=(ErrorKind.REMOTE_UNREACHABLE, True)),
    RuleDomain(exc=ReconnectExhaustedError, result=(ErrorKind.RECONNECT_EXHAUSTED, False)),
    RuleDomain(exc=SdkError, result=(ErrorKind.UNKNOWN, False)),
    RuleDomain(exc=NETWORK_EXCEPTIONS, result=(ErrorKind.REMOTE_UNREACHABLE, True)),
    RuleDomain(exc=DESERIALIZATION_ERRORS, result=(ErrorKind.MALFORMED_RESPONSE, False)),
]


def classify_exception(err: BaseException) -> ErrorCategory:
    """예외 → (ErrorKind, retryable) 분류기 (규칙 테이블 기반)

    SdkError 하위 타입은 자신의 kind를 그대로 사용합니다.
    """
    for rule in RULES:
        if isinstance(err, rule.exc):
            kind, retryable = rule.result
            if isinstance(err, SdkError) and kind is ErrorKind.UNKNOWN:
                return err.kind, isinstance(err, RemoteUnreachableError)
            return kind, retryable

    return ErrorKind.UNKNOWN, False


__all__ = [
    "SdkError",
    "RemoteUnreachableError",
    "RemoteTimeoutError",
    "FeedConnectionError",
    "MalformedResponseError",
    "PairNotFoundError",
    "ReconnectExhaustedError",
    "DESERIALIZATION_ERRORS",
    "NETWORK_EXCEPTIONS",
    "classify_exception",
]
