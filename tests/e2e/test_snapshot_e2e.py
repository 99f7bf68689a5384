from __future__ import annotations

import pytest

from avantis_trader_sdk import TradeInput, TraderClient
from avantis_trader_sdk.common.exceptions import RemoteTimeoutError
from tests.factory_builders import REFERRER, TRADER, FakeLedger, build_raw_pair


def _market_ledger(**overrides) -> FakeLedger:
    return FakeLedger(
        referrals={TRADER: (1, REFERRER)},
        tiers={1: 20.0},
        execution_fee=200_000_000_000_000,
        **overrides,
    )


@pytest.mark.asyncio
async def test_snapshot_partitions_three_pairs_into_two_groups() -> None:
    ledger = _market_ledger()

    async with TraderClient(ledger=ledger) as client:
        snapshot = await client.get_snapshot(trader=TRADER)

    group_0 = snapshot.groups["group_0"]
    group_1 = snapshot.groups["group_1"]
    assert set(group_0.pairs) == {"BTC/USD", "ETH/USD"}
    assert set(group_1.pairs) == {"EUR/USD"}

    # 모든 페어가 정확히 한 그룹에만 속함
    names = [name for group in snapshot.groups.values() for name in group.pairs]
    assert sorted(names) == ["BTC/USD", "ETH/USD", "EUR/USD"]

    # 할인 20% 적용된 수수료
    assert group_0.pairs["ETH/USD"].fee is not None
    assert group_0.pairs["ETH/USD"].fee.fee_p == pytest.approx(0.00016)
    assert ledger.count("referralTiers") == 1

    # 블렌딩 값은 자산/카테고리 값 사이
    eur = group_1.pairs["EUR/USD"]
    assert eur.skew is not None and group_1.skew is not None
    assert min(0.25, group_1.skew.skew) <= eur.skew.skew <= max(0.25, group_1.skew.skew)


@pytest.mark.asyncio
async def test_snapshot_survives_partial_failures_and_refresh() -> None:
    ledger = _market_ledger(
        failures={("openInterestUsdc", 0, 0): RemoteTimeoutError("deadline")},
    )

    async with TraderClient(ledger=ledger) as client:
        first = await client.get_snapshot()

        btc = first.groups["group_0"].pairs["BTC/USD"]
        assert btc.open_interest is None
        assert btc.utilization is None
        assert btc.fee is not None

        ledger.failures.clear()
        ledger.pairs.append(build_raw_pair("SOL", group_index=0))
        ledger.pair_oi[3] = (10_000, 10_000)
        ledger.depth[3] = (1_000_000, 1_000_000)
        ledger.margin_fee[3] = 0.0003

        await client.pairs_cache.get_pairs_info(force_refresh=True)
        second = await client.get_snapshot()

    assert list(second.groups["group_0"].pairs) == ["BTC/USD", "ETH/USD", "SOL/USD"]
    assert second.groups["group_0"].pairs["BTC/USD"].open_interest is not None
    assert second.groups["group_0"].pairs["SOL/USD"].skew is not None


@pytest.mark.asyncio
async def test_trade_flow_from_snapshot_to_unsigned_tx() -> None:
    ledger = _market_ledger()

    async with TraderClient(ledger=ledger) as client:
        pair = await client.snapshot.get_pair_snapshot("EUR/USD")
        assert pair is not None

        trade = TradeInput(
            pair="EUR/USD",
            is_long=False,
            collateral_in_trade=500,
            leverage=100,
            open_price=1.08,
        )
        fee = await client.trading_params.get_opening_fee(trade.pair, trade.position_size_usdc, False)
        protection = await client.trading_params.get_loss_protection_for_trade(trade)
        tx = await client.trade.build_trade_open_tx(trade, TRADER)

    assert fee == pytest.approx(40.0)
    assert protection.tier == 1
    assert tx.to == ledger.address_of("Trading")
    assert tx.value == 200_000_000_000_000
