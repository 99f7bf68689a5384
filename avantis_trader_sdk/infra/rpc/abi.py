"""컨트랙트별 최소 ABI

SDK가 실제로 호출하는 함수만 담습니다. 배포 ABI 전체가 필요하면
LedgerClient 생성 시 abis 인자로 교체할 수 있습니다.
"""

from __future__ import annotations

from typing import Any, Final

from avantis_trader_sdk.core.types import ContractName

AbiEntry = dict[str, Any]


def _param(name: str, type_: str, components: list[AbiEntry] | None = None) -> AbiEntry:
    entry: AbiEntry = {"name": name, "type": type_}
    if components is not None:
        entry["components"] = components
    return entry


def _fn(
    name: str,
    inputs: list[AbiEntry],
    outputs: list[AbiEntry] | None = None,
    mutability: str = "view",
) -> AbiEntry:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs or [],
        "stateMutability": mutability,
    }


def _u(name: str = "") -> AbiEntry:
    return _param(name, "uint256")


# pairs(i) 출력 순서 (ledger 응답이 tuple일 때 위치 기반 매핑에 사용)
PAIR_FIELDS: Final[tuple[str, ...]] = (
    "from",
    "to",
    "spreadP",
    "groupIndex",
    "feeIndex",
    "maxLeverage",
    "maxOpenInterestUsdc",
)

# Trade 구조체 필드 순서 (openTrade 입력 / getOpenTrades 출력 공통)
TRADE_FIELDS: Final[tuple[str, ...]] = (
    "trader",
    "pairIndex",
    "index",
    "initialPosToken",
    "positionSizeUsdc",
    "openPrice",
    "buy",
    "leverage",
    "tp",
    "sl",
)

_TRADE_COMPONENTS: list[AbiEntry] = [
    _param("trader", "address"),
    _u("pairIndex"),
    _u("index"),
    _u("initialPosToken"),
    _u("positionSizeUsdc"),
    _u("openPrice"),
    _param("buy", "bool"),
    _u("leverage"),
    _u("tp"),
    _u("sl"),
]

PAIR_STORAGE_ABI: Final[list[AbiEntry]] = [
    _fn("pairsCount", [], [_u()]),
    _fn(
        "pairs",
        [_u("index")],
        [
            _param("from", "string"),
            _param("to", "string"),
            _u("spreadP"),
            _u("groupIndex"),
            _u("feeIndex"),
            _u("maxLeverage"),
            _u("maxOpenInterestUsdc"),
        ],
    ),
    _fn("groupOI", [_u("groupIndex"), _u("side")], [_u()]),
    _fn("groupCollateral", [_u("groupIndex"), _param("isLong", "bool")], [_u()]),
]

PAIR_INFOS_ABI: Final[list[AbiEntry]] = [
    _fn("getPairMarginFeeP", [_u("pairIndex")], [_u()]),
    _fn("onePercentDepthAboveUsdc", [_u("pairIndex")], [_u()]),
    _fn("onePercentDepthBelowUsdc", [_u("pairIndex")], [_u()]),
    _fn(
        "getOpenFeeUsdc",
        [_u("pairIndex"), _u("positionSizeUsdc"), _param("isLong", "bool")],
        [_u()],
    ),
    _fn(
        "getPriceImpactP",
        [_u("pairIndex"), _param("isLong", "bool"), _u("positionSizeUsdc")],
        [_u()],
    ),
    _fn("getLossProtectionTier", [_u("pairIndex"), _u("positionSizeUsdc")], [_u()]),
    _fn("getLossProtectionP", [_u("pairIndex"), _u("tier")], [_u()]),
]

TRADING_STORAGE_ABI: Final[list[AbiEntry]] = [
    _fn("openInterestUsdc", [_u("pairIndex"), _u("side")], [_u()]),
    _fn(
        "getOpenTrades",
        [_param("trader", "address")],
        [_param("", "tuple[]", _TRADE_COMPONENTS)],
    ),
]

TRADING_ABI: Final[list[AbiEntry]] = [
    _fn("getExecutionFee", [], [_u()]),
    _fn(
        "openTrade",
        [
            _param("t", "tuple", _TRADE_COMPONENTS),
            _u("orderType"),
            _u("slippageP"),
            _param("referrer", "address"),
        ],
        mutability="payable",
    ),
    _fn("closeTradeMarket", [_u("pairIndex"), _u("index")], mutability="nonpayable"),
    _fn(
        "updateMargin",
        [_u("pairIndex"), _u("index"), _u("amount"), _param("isDeposit", "bool")],
        mutability="nonpayable",
    ),
    _fn(
        "updateTpSl",
        [_u("pairIndex"), _u("index"), _u("tp"), _u("sl")],
        mutability="nonpayable",
    ),
    _fn("cancelOpenOrder", [_u("pairIndex"), _u("index")], mutability="nonpayable"),
]

REFERRAL_ABI: Final[list[AbiEntry]] = [
    _fn(
        "getTraderReferralInfo",
        [_param("trader", "address")],
        [_u("tier"), _param("referrer", "address")],
    ),
    _fn(
        "referralTiers",
        [_u("tier")],
        [_u("feeDiscountPct"), _u("refRebatePct")],
    ),
]

DEFAULT_ABIS: Final[dict[ContractName, list[AbiEntry]]] = {
    "PairStorage": PAIR_STORAGE_ABI,
    "PairInfos": PAIR_INFOS_ABI,
    "TradingStorage": TRADING_STORAGE_ABI,
    "Trading": TRADING_ABI,
    "Referral": REFERRAL_ABI,
}
