"""
수신 메시지 판정 (순수 함수)

네트워크/콜백과 분리되어 있어 입력만으로 결과가 정해집니다.
- price_update 가 아닌 메시지      -> ignored
- 형태가 잘못된 price_update       -> malformed (reason 포함)
- 정상 price_update               -> update (PriceFeedResponse)
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError

from avantis_trader_sdk.common.exceptions import MalformedResponseError
from avantis_trader_sdk.common.serde import loads
from avantis_trader_sdk.core.dto.internal.feed import PriceUpdateDecision
from avantis_trader_sdk.core.dto.io.feed import PriceFeedResponse
from avantis_trader_sdk.core.types import RawMessage

PRICE_UPDATE = "price_update"


def _feed_payload(message: Mapping[str, Any]) -> Any:
    """중첩 형태(price_feed)면 안쪽, 아니면 메시지 자체"""
    nested = message.get("price_feed")
    return nested if nested is not None else message


def parse_price_update(raw: RawMessage) -> PriceUpdateDecision:
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            message = loads(raw)
        except MalformedResponseError as e:
            return PriceUpdateDecision(kind="malformed", reason=str(e))
    else:
        message = raw

    if not isinstance(message, Mapping):
        return PriceUpdateDecision(kind="malformed", reason="message is not an object")

    message_type = message.get("type")
    if message_type != PRICE_UPDATE:
        return PriceUpdateDecision(
            kind="ignored", message_type=str(message_type) if message_type else None
        )

    payload = _feed_payload(message)
    if not isinstance(payload, Mapping):
        return PriceUpdateDecision(
            kind="malformed", message_type=PRICE_UPDATE, reason="price_feed is not an object"
        )

    try:
        feed = PriceFeedResponse.model_validate(payload)
    except ValidationError as e:
        return PriceUpdateDecision(
            kind="malformed",
            message_type=PRICE_UPDATE,
            reason=f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}",
        )

    return PriceUpdateDecision(kind="update", feed=feed, message_type=PRICE_UPDATE)


def parse_http_price_updates(document: Any) -> list[PriceFeedResponse]:
    """HTTP 단발 조회 응답 → PriceFeedResponse 목록

    응답은 리스트 자체 또는 {"parsed": [...]} 형태를 허용합니다.
    """
    items = document.get("parsed") if isinstance(document, Mapping) else document
    if not isinstance(items, list):
        raise MalformedResponseError("price update response has no parsed list")
    try:
        return [PriceFeedResponse.model_validate(item) for item in items]
    except ValidationError as e:
        raise MalformedResponseError(f"malformed price update: {e}") from e
