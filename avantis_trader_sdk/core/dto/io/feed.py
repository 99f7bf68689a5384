"""가격 피드 DTO

스트림 메시지는 두 가지 형태가 모두 들어옵니다.
- 평탄한 형태: {"type": "price_update", "id": ..., "price": {...}, "emaPrice": {...}}
- 중첩 형태:  {"type": "price_update", "price_feed": {"id": ..., "price": {...}, "ema_price": {...}}}
필드명은 camelCase / snake_case 를 모두 허용합니다.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from avantis_trader_sdk.core.dto.io._base import InboundModelDTO


def normalize_feed_id(feed_id: str) -> str:
    """피드 ID 정규화 (소문자, 0x 접두 제거)

    HTTP 응답은 0x 없이, 설정/레지스트리는 0x를 붙여 쓰는 경우가 있어 비교 전에 맞춥니다.
    """
    value = feed_id.strip().lower()
    return value[2:] if value.startswith("0x") else value


class PriceData(InboundModelDTO):
    """Pyth 가격 (정수 문자열 + 지수)"""

    price: str
    conf: str
    expo: int
    publish_time: int = Field(
        validation_alias=AliasChoices("publish_time", "publishTime"),
    )

    @field_validator("price", "conf", mode="before")
    @classmethod
    def _coerce_integer_string(cls, value: object) -> str:
        # 정수로 오는 경우도 있어 문자열로 통일하고, 정수가 아니면 거부합니다.
        if isinstance(value, bool):
            raise ValueError("boolean is not a price")
        text = str(value).strip()
        int(text)
        return text

    @property
    def value(self) -> float:
        """표시 가격 = price * 10^expo"""
        return int(self.price) * (10.0**self.expo)

    @property
    def confidence(self) -> float:
        return int(self.conf) * (10.0**self.expo)


class PriceFeedResponse(InboundModelDTO):
    """단일 피드의 가격 업데이트"""

    id: str
    price: PriceData
    ema_price: PriceData = Field(
        validation_alias=AliasChoices("ema_price", "emaPrice"),
    )

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("empty feed id")
        return normalize_feed_id(value)

    @property
    def converted_price(self) -> float:
        return self.price.value

    @property
    def converted_ema_price(self) -> float:
        return self.ema_price.value
