"""온체인 고정소수점 변환

- 6 decimals: USDC 금액
- 10 decimals: 가격 / 퍼센트 / 레버리지
- 12 decimals: 마진 수수료율
- 18 decimals: 네이티브 토큰 금액

display = integer / 10^decimals
integer = floor(display * 10^decimals)  (인코딩 방향은 반올림이 아니라 절삭)

float 곱셈 오차(0.29 * 100 = 28.999...)를 피하기 위해 Decimal(str(value))로 계산합니다.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, localcontext
from typing import Final, SupportsIndex

USDC_DECIMALS: Final[int] = 6
PRICE_DECIMALS: Final[int] = 10
FEE_DECIMALS: Final[int] = 12
NATIVE_DECIMALS: Final[int] = 18

_PRECISION: Final[int] = 78  # uint256 자릿수 이상


def from_blockchain(value: int | str | SupportsIndex, decimals: int) -> float:
    """온체인 정수 → 표시값"""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if isinstance(value, str):
            raw = int(value, 16) if value.lower().startswith("0x") else int(value)
        else:
            raw = int(value)
        return float(Decimal(raw).scaleb(-decimals))


def to_blockchain(value: float | int | str | Decimal, decimals: int) -> int:
    """표시값 → 온체인 정수 (floor 절삭)"""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
        return int(dec.scaleb(decimals).to_integral_value(rounding=ROUND_FLOOR))


def from_blockchain6(value: int | str | SupportsIndex) -> float:
    return from_blockchain(value, USDC_DECIMALS)


def from_blockchain10(value: int | str | SupportsIndex) -> float:
    return from_blockchain(value, PRICE_DECIMALS)


def from_blockchain12(value: int | str | SupportsIndex) -> float:
    return from_blockchain(value, FEE_DECIMALS)


def from_blockchain18(value: int | str | SupportsIndex) -> float:
    return from_blockchain(value, NATIVE_DECIMALS)


def to_blockchain6(value: float | int | str | Decimal) -> int:
    return to_blockchain(value, USDC_DECIMALS)


def to_blockchain10(value: float | int | str | Decimal) -> int:
    return to_blockchain(value, PRICE_DECIMALS)


def to_blockchain12(value: float | int | str | Decimal) -> int:
    return to_blockchain(value, FEE_DECIMALS)


def to_blockchain18(value: float | int | str | Decimal) -> int:
    return to_blockchain(value, NATIVE_DECIMALS)
