"""에러 분류 타입 정의 모듈.

광범위한 Exception 사용을 지양하고, 의도한 예외만 명시적으로 분류하기 위해 사용합니다.
"""

from enum import StrEnum
from typing import TypeAlias


class ErrorKind(StrEnum):
    """SDK 에러 분류

    - REMOTE_UNREACHABLE: 네트워크/연결 실패, 데드라인 초과 (호출 단위 실패)
    - MALFORMED_RESPONSE: 응답 형태/스키마 불일치
    - NOT_FOUND: 현재 캐시에 없는 페어 이름/인덱스
    - PARTIAL_AGGREGATION: 개별 그룹/페어 메트릭만 실패
    - RECONNECT_EXHAUSTED: 스트림 재접속 한도 초과
    """

    REMOTE_UNREACHABLE = "remote_unreachable"
    MALFORMED_RESPONSE = "malformed_response"
    NOT_FOUND = "not_found"
    PARTIAL_AGGREGATION = "partial_aggregation"
    RECONNECT_EXHAUSTED = "reconnect_exhausted"
    UNKNOWN = "unknown"


ErrorCategory: TypeAlias = tuple[ErrorKind, bool]  # (kind, retryable)
ExceptionGroupType: TypeAlias = type[BaseException] | tuple[type[BaseException], ...]
