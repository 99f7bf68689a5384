"""
트레이드 트랜잭션 페이로드 빌더

서명/전송은 하지 않습니다. 모든 빌더는 UnsignedTransaction {to, data, value}를 반환하고,
호출자가 자신의 서명 수단으로 처리합니다.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from pydantic import ValidationError
from web3 import Web3

from avantis_trader_sdk.common.exceptions import MalformedResponseError
from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.core.decimals import (
    from_blockchain6,
    from_blockchain10,
    to_blockchain6,
    to_blockchain10,
)
from avantis_trader_sdk.core.dto.io.trade import (
    MarginUpdateType,
    TradeInput,
    TradeResponse,
    UnsignedTransaction,
)
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.market.trading_parameters import resolve_pair_index
from avantis_trader_sdk.core.types import Address, PairIndex
from avantis_trader_sdk.infra.rpc.abi import TRADE_FIELDS
from avantis_trader_sdk.infra.rpc.ledger_client import LedgerClient

logger = PipelineLogger.get_logger("trade", "market")


def decode_trade(raw: Mapping[str, Any] | Sequence[Any]) -> TradeResponse:
    """getOpenTrades 항목 → TradeResponse"""
    fields = raw if isinstance(raw, Mapping) else dict(zip(TRADE_FIELDS, raw))
    try:
        initial = fields.get("initialPosToken") or fields.get("positionSizeUsdc") or 0
        return TradeResponse(
            trader=str(fields["trader"]),
            pair_index=int(fields["pairIndex"]),
            index=int(fields["index"]),
            initial_pos_usdc=from_blockchain6(initial),
            open_price=from_blockchain10(fields["openPrice"]),
            buy=bool(fields["buy"]),
            leverage=from_blockchain10(fields["leverage"]),
            tp=from_blockchain10(fields["tp"]),
            sl=from_blockchain10(fields["sl"]),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise MalformedResponseError(f"malformed trade record: {e}") from e


class TradeBuilder:
    def __init__(self, ledger: LedgerClient, registry: PairRegistry) -> None:
        self._ledger = ledger
        self._registry = registry

    async def get_trade_execution_fee(self, timeout: float | None = None) -> int:
        """실행 수수료 (네이티브 토큰 wei)"""
        return int(await self._ledger.call("Trading", "getExecutionFee", timeout=timeout))

    async def get_trades(
        self, trader: Address, timeout: float | None = None
    ) -> list[TradeResponse]:
        raws = await self._ledger.call(
            "TradingStorage", "getOpenTrades", trader, timeout=timeout
        )
        return [decode_trade(raw) for raw in raws]

    async def build_trade_open_tx(
        self,
        trade_input: TradeInput,
        trader: Address,
        timeout: float | None = None,
    ) -> UnsignedTransaction:
        """신규 포지션 오픈 (value = 실행 수수료)"""
        pair_index = await resolve_pair_index(self._registry, trade_input.pair, timeout)
        execution_fee = await self.get_trade_execution_fee(timeout)

        trade = (
            Web3.to_checksum_address(trader),
            pair_index,
            0,
            0,
            to_blockchain6(trade_input.position_size_usdc),
            to_blockchain10(trade_input.open_price),
            trade_input.is_long,
            to_blockchain10(trade_input.leverage),
            to_blockchain10(trade_input.tp),
            to_blockchain10(trade_input.sl),
        )
        tx = self._ledger.build_transaction(
            "Trading",
            "openTrade",
            trade,
            trade_input.order_type.onchain_value,
            to_blockchain10(trade_input.max_slippage_p),
            Web3.to_checksum_address(trade_input.referrer),
            value=execution_fee,
        )
        logger.debug(
            "오픈 트랜잭션 생성",
            pair=trade_input.pair,
            pair_index=pair_index,
            order_type=trade_input.order_type.value,
            value=execution_fee,
        )
        return tx

    def build_trade_close_tx(
        self, pair_index: PairIndex, trade_index: int
    ) -> UnsignedTransaction:
        return self._ledger.build_transaction(
            "Trading", "closeTradeMarket", pair_index, trade_index
        )

    def build_order_cancel_tx(
        self, pair_index: PairIndex, order_index: int
    ) -> UnsignedTransaction:
        return self._ledger.build_transaction(
            "Trading", "cancelOpenOrder", pair_index, order_index
        )

    def build_trade_margin_update_tx(
        self,
        pair_index: PairIndex,
        trade_index: int,
        margin_delta: float,
        update_type: MarginUpdateType,
    ) -> UnsignedTransaction:
        """margin_delta: USDC (표시 단위)"""
        return self._ledger.build_transaction(
            "Trading",
            "updateMargin",
            pair_index,
            trade_index,
            to_blockchain6(margin_delta),
            MarginUpdateType(update_type) is MarginUpdateType.DEPOSIT,
        )

    def build_trade_tp_sl_update_tx(
        self, pair_index: PairIndex, trade_index: int, tp: float, sl: float
    ) -> UnsignedTransaction:
        return self._ledger.build_transaction(
            "Trading",
            "updateTpSl",
            pair_index,
            trade_index,
            to_blockchain10(tp),
            to_blockchain10(sl),
        )
