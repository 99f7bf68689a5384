from __future__ import annotations

from dataclasses import dataclass

from avantis_trader_sdk.core.types import ErrorCategory, ExceptionGroupType


@dataclass(
    slots=True, frozen=True, eq=False, repr=False, match_args=False, kw_only=True
)
class RuleDomain:
    """예외 분류 규칙(도메인)

    exc:    매칭할 예외 타입(단일 타입 또는 타입 튜플)
    result: ErrorCategory (ErrorKind, retryable)
    """

    exc: ExceptionGroupType
    result: ErrorCategory


@dataclass(slots=True, frozen=True, eq=True, repr=False, match_args=False, kw_only=True)
class ReconnectPolicyDomain:
    """스트림 재접속 정책(도메인).

    지연 = base_delay * 2^(attempt-1), attempt는 1부터 시작합니다.
    max_attempts를 넘으면 자동 재시도를 멈춥니다.
    """

    base_delay: float = 1.0
    max_attempts: int = 5
    open_timeout: float = 10.0
