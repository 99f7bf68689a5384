from typing import Any, Callable
from decimal import Decimal

import orjson

from avantis_trader_sdk.common.exceptions import MalformedResponseError

JSONDefault = Callable[[Any], Any]


def default_json_encoder(obj: Any) -> Any:
    """JSON 직렬화 헬퍼.

    - Decimal -> str (정밀도 보존)
    - int 이외의 정수형(web3 반환값 등) -> int
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if hasattr(obj, "__index__"):
        return int(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def to_bytes(value: Any, default: JSONDefault | None = default_json_encoder) -> bytes:
    """객체를 UTF-8 JSON bytes(orjson)로 직렬화."""
    return orjson.dumps(value, default=default)


def to_text(value: Any) -> str:
    """웹소켓 텍스트 프레임용 JSON 문자열"""
    return to_bytes(value).decode("utf-8")


def loads(raw: str | bytes | bytearray) -> Any:
    """JSON 역직렬화 - 실패 시 MalformedResponseError"""
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedResponseError(f"invalid JSON payload: {e}") from e
