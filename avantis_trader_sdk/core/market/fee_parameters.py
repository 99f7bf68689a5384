"""
페어별 마진 수수료 집계

fee_p = base_fee_p * (1 - discount / 100)

트레이더 할인율은 호출당 한 번만 조회합니다. 추천인이 없는 트레이더는 조용히 0,
조회 실패는 경고 로그 후 0으로 처리하며, 어느 경우에도 수수료 조회를 막지 않습니다.
"""

from __future__ import annotations

from typing import Any, Sequence

from avantis_trader_sdk.common.exceptions import classify_exception
from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.config.settings import ZERO_ADDRESS
from avantis_trader_sdk.core.decimals import from_blockchain10, from_blockchain12
from avantis_trader_sdk.core.dto.io.market import Fee
from avantis_trader_sdk.core.market._utils import gather_per_entity
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.types import Address, PairIndex
from avantis_trader_sdk.infra.rpc.ledger_client import LedgerClient

logger = PipelineLogger.get_logger("fee_parameters", "market")


def apply_discount(base_fee_p: float, discount_pct: float) -> float:
    discount = min(100.0, max(0.0, discount_pct))
    return base_fee_p * (1 - discount / 100)


def _first(value: Any, key: str) -> Any:
    """(tier, referrer) 같은 다중 출력을 매핑/tuple 모두에서 꺼냄"""
    if isinstance(value, dict):
        return value[key]
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return value[0]
    return value


class FeeAggregator:
    def __init__(self, ledger: LedgerClient, registry: PairRegistry) -> None:
        self._ledger = ledger
        self._registry = registry

    async def _fetch_discount(self, trader: Address, timeout: float | None) -> float:
        info = await self._ledger.call(
            "Referral", "getTraderReferralInfo", trader, timeout=timeout
        )
        if isinstance(info, dict):
            tier, referrer = info["tier"], info["referrer"]
        else:
            tier, referrer = info[0], info[1]

        if not referrer or str(referrer).lower() == ZERO_ADDRESS:
            return 0.0

        tier_info = await self._ledger.call("Referral", "referralTiers", tier, timeout=timeout)
        return from_blockchain10(_first(tier_info, "feeDiscountPct"))

    async def get_trader_fee_discount(
        self, trader: Address | None, timeout: float | None = None
    ) -> float:
        """트레이더 수수료 할인율 (퍼센트, 실패/미등록 시 0)"""
        if not trader:
            return 0.0
        try:
            return await self._fetch_discount(trader, timeout)
        except Exception as e:
            kind, retryable = classify_exception(e)
            logger.warning(
                "추천인 할인 조회 실패 - 할인 0 적용",
                trader=trader,
                error_kind=kind.value,
                retryable=retryable,
                error=str(e),
            )
            return 0.0

    async def get_margin_fee(
        self, trader: Address | None = None, timeout: float | None = None
    ) -> dict[PairIndex, Fee]:
        """{pair_index: Fee} (할인 적용 후)"""
        state = await self._registry.resolve(timeout=timeout)
        discount = await self.get_trader_fee_discount(trader, timeout)

        async def fetch(pair_index: PairIndex) -> Fee:
            raw = await self._ledger.call(
                "PairInfos", "getPairMarginFeeP", pair_index, timeout=timeout
            )
            return Fee(fee_p=apply_discount(from_blockchain12(raw), discount))

        return await gather_per_entity(state.pairs, fetch, entity="pair_fee", logger=logger)
