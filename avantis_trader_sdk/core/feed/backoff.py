from __future__ import annotations

from avantis_trader_sdk.core.dto.internal.common import ReconnectPolicyDomain


def compute_next_backoff(policy: ReconnectPolicyDomain, attempt: int) -> float:
    """지수 백오프 계산 (지터 없음, 결정적).

    Args:
        policy: 재접속 정책 객체
        attempt: 1부터 시작하는 재접속 시도 번호

    Returns:
        다음 대기 시간(초) = base_delay * 2^(attempt-1)
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return policy.base_delay * (2 ** (attempt - 1))


def can_retry(policy: ReconnectPolicyDomain, attempt: int) -> bool:
    """attempt 번째 재접속을 시도해도 되는지"""
    return attempt <= policy.max_attempts
