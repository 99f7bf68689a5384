from __future__ import annotations

import pytest
from pydantic import ValidationError

from avantis_trader_sdk.common.exceptions import (
    MalformedResponseError,
    PairNotFoundError,
    RemoteUnreachableError,
)
from avantis_trader_sdk.core.decimals import to_blockchain6, to_blockchain10
from avantis_trader_sdk.core.dto.io.trade import (
    MarginUpdateType,
    TradeInput,
    TradeInputOrderType,
)
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from avantis_trader_sdk.core.market.trade import TradeBuilder, decode_trade
from avantis_trader_sdk.core.market.trading_parameters import TradingParameters
from tests.factory_builders import REFERRER, TRADER, FakeLedger, build_raw_trade


def _decoded(data: str) -> str:
    """FakeLedger.encode 결과 → "fn:(args)" 텍스트"""
    return bytes.fromhex(data[2:]).decode()


def _trade_input(**overrides) -> TradeInput:
    fields = {
        "pair": "BTC/USD",
        "is_long": True,
        "collateral_in_trade": 100,
        "leverage": 10,
        "open_price": 65_000,
        "tp": 70_000,
        "sl": 60_000,
    }
    fields.update(overrides)
    return TradeInput(**fields)


# ========================================
# TradeInput
# ========================================


def test_trade_input_position_size() -> None:
    assert _trade_input().position_size_usdc == 1_000


def test_trade_input_defaults() -> None:
    trade = _trade_input()
    assert trade.order_type is TradeInputOrderType.MARKET
    assert trade.referrer == "0x0000000000000000000000000000000000000000"
    assert trade.max_slippage_p == 1.0


def test_trade_input_rejects_bad_referrer_and_collateral() -> None:
    with pytest.raises(ValidationError):
        _trade_input(referrer="not-an-address")
    with pytest.raises(ValidationError):
        _trade_input(collateral_in_trade=0)


def test_order_type_onchain_values() -> None:
    assert TradeInputOrderType.MARKET.onchain_value == 0
    assert TradeInputOrderType.LIMIT.onchain_value == 1
    assert TradeInputOrderType.STOP_LIMIT.onchain_value == 2
    assert TradeInputOrderType.MARKET_ZERO_FEE.onchain_value == 3


# ========================================
# TradeBuilder
# ========================================


@pytest.mark.asyncio
async def test_open_tx_encodes_trade_and_pays_execution_fee() -> None:
    ledger = FakeLedger(execution_fee=350_000_000_000_000)
    builder = TradeBuilder(ledger, PairRegistry(ledger))

    tx = await builder.build_trade_open_tx(
        _trade_input(pair="ETH/USD", order_type=TradeInputOrderType.LIMIT, referrer=REFERRER),
        TRADER,
    )

    assert tx.to == ledger.address_of("Trading")
    assert tx.value == 350_000_000_000_000
    decoded = _decoded(tx.data)
    assert decoded.startswith("openTrade:")
    assert f"{to_blockchain6(1_000)}" in decoded
    assert f"{to_blockchain10(65_000)}" in decoded
    assert f"'{REFERRER}'" in decoded
    # (trade tuple, order type, slippage, referrer) / pair index 1
    assert f"('{TRADER}', 1, 0, 0," in decoded
    assert f", 1, {to_blockchain10(1.0)}, " in decoded


@pytest.mark.asyncio
async def test_open_tx_unknown_pair_raises() -> None:
    ledger = FakeLedger()
    builder = TradeBuilder(ledger, PairRegistry(ledger))

    with pytest.raises(PairNotFoundError):
        await builder.build_trade_open_tx(_trade_input(pair="DOGE/USD"), TRADER)
    assert ledger.count("getExecutionFee") == 0


@pytest.mark.asyncio
async def test_execution_fee_failure_propagates() -> None:
    ledger = FakeLedger(failures={"getExecutionFee": RemoteUnreachableError("rpc down")})
    builder = TradeBuilder(ledger, PairRegistry(ledger))

    with pytest.raises(RemoteUnreachableError):
        await builder.get_trade_execution_fee()


def test_close_cancel_margin_and_tp_sl_payloads() -> None:
    ledger = FakeLedger()
    builder = TradeBuilder(ledger, PairRegistry(ledger))

    close = builder.build_trade_close_tx(0, 2)
    cancel = builder.build_order_cancel_tx(1, 0)
    margin = builder.build_trade_margin_update_tx(0, 2, 25.5, MarginUpdateType.WITHDRAW)
    tp_sl = builder.build_trade_tp_sl_update_tx(0, 2, 70_000, 0)

    assert _decoded(close.data) == "closeTradeMarket:(0, 2)"
    assert _decoded(cancel.data) == "cancelOpenOrder:(1, 0)"
    assert _decoded(margin.data) == f"updateMargin:(0, 2, {to_blockchain6(25.5)}, False)"
    assert _decoded(tp_sl.data) == f"updateTpSl:(0, 2, {to_blockchain10(70_000)}, 0)"
    assert {tx.value for tx in (close, cancel, margin, tp_sl)} == {0}
    assert close.to_tx_params() == {"to": close.to, "data": close.data, "value": 0}


@pytest.mark.asyncio
async def test_get_trades_decodes_open_trades() -> None:
    ledger = FakeLedger(open_trades=[build_raw_trade(), build_raw_trade(pair_index=2, buy=False)])
    builder = TradeBuilder(ledger, PairRegistry(ledger))

    trades = await builder.get_trades(TRADER)

    assert [t.pair_index for t in trades] == [0, 2]
    assert trades[0].leverage == 10
    assert trades[0].open_price == 65_000
    assert trades[1].buy is False


def test_decode_trade_rejects_short_record() -> None:
    with pytest.raises(MalformedResponseError):
        decode_trade((TRADER, 0))


# ========================================
# TradingParameters
# ========================================


@pytest.mark.asyncio
async def test_opening_fee_and_price_impact() -> None:
    ledger = FakeLedger()
    params = TradingParameters(ledger, PairRegistry(ledger))

    fee = await params.get_opening_fee("BTC/USD", 10_000, True)
    impact = await params.get_price_impact(0, 10_000, False)

    assert fee == pytest.approx(8.0)
    assert impact == pytest.approx(0.02)


@pytest.mark.asyncio
async def test_loss_protection_for_trade() -> None:
    ledger = FakeLedger()
    params = TradingParameters(ledger, PairRegistry(ledger))

    info = await params.get_loss_protection_for_trade(_trade_input(collateral_in_trade=200))

    assert info.tier == 1
    assert info.percentage == pytest.approx(20.0)
    assert info.amount == pytest.approx(40.0)


@pytest.mark.asyncio
async def test_trading_parameters_unknown_pair_index() -> None:
    ledger = FakeLedger()
    params = TradingParameters(ledger, PairRegistry(ledger))

    with pytest.raises(PairNotFoundError):
        await params.get_loss_protection_tier(42, 1_000)
