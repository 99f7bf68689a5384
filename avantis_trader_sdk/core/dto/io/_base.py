"""I/O 경계 DTO 기반 클래스

Pydantic v2 ConfigDict를 공유하여 DTO 간 설정 중복을 없앱니다.
- SDK가 생성해서 호출자에게 돌려주는 값: OPTIMIZED_CONFIG (불변, 알 수 없는 필드 금지)
- 외부에서 수신하는 값(스트림/HTTP): INBOUND_CONFIG (불변, 알 수 없는 필드 무시)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# ========================================
# ConfigDict (전역 설정)
# ========================================

OPTIMIZED_CONFIG = ConfigDict(
    use_enum_values=True,  # Enum → 값 직렬화
    extra="forbid",  # 알 수 없는 필드 금지
    validate_default=True,
    str_strip_whitespace=True,
    frozen=True,  # 불변 객체 (스냅샷은 반환 후 변경 불가)
    populate_by_name=True,  # 필드명/alias 모두 허용 ("from" 등 예약어)
    arbitrary_types_allowed=False,
)

# 외부 피드는 필드가 추가될 수 있으므로 무시 (metadata, vaa 등)
INBOUND_CONFIG = ConfigDict(
    extra="ignore",
    validate_default=True,
    str_strip_whitespace=True,
    frozen=True,
    populate_by_name=True,
    arbitrary_types_allowed=False,
)


# ========================================
# 베이스 클래스
# ========================================


class BaseIOModelDTO(BaseModel):
    """SDK 출력용 공통 Pydantic v2 베이스 모델.

    특징:
    - 불변 객체 (frozen=True)
    - Enum 직렬화를 값(value)로 고정
    - 알 수 없는 필드 금지 (extra="forbid")
    - alias와 필드명 모두로 생성 가능
    """

    model_config = OPTIMIZED_CONFIG


class InboundModelDTO(BaseModel):
    """외부 수신 메시지용 베이스 모델 (알 수 없는 필드 무시)."""

    model_config = INBOUND_CONFIG
