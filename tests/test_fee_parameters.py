from __future__ import annotations

import pytest

from avantis_trader_sdk.common.exceptions import RemoteUnreachableError
from avantis_trader_sdk.core.market.fee_parameters import FeeAggregator, apply_discount
from avantis_trader_sdk.core.market.pairs_cache import PairRegistry
from tests.factory_builders import REFERRER, TRADER, FakeLedger


def _aggregator(ledger: FakeLedger) -> FeeAggregator:
    return FeeAggregator(ledger, PairRegistry(ledger))


def test_apply_discount_is_clamped() -> None:
    assert apply_discount(0.1, 25) == pytest.approx(0.075)
    assert apply_discount(0.1, 150) == 0.0
    assert apply_discount(0.1, -10) == pytest.approx(0.1)


@pytest.mark.asyncio
async def test_margin_fee_without_trader() -> None:
    ledger = FakeLedger()
    fees = await _aggregator(ledger).get_margin_fee()

    assert fees[0].fee_p == pytest.approx(0.0001)
    assert fees[1].fee_p == pytest.approx(0.0002)
    assert ledger.count("getTraderReferralInfo") == 0


@pytest.mark.asyncio
async def test_margin_fee_applies_referral_discount_once() -> None:
    ledger = FakeLedger(referrals={TRADER: (2, REFERRER)}, tiers={2: 10.0})

    fees = await _aggregator(ledger).get_margin_fee(TRADER)

    assert fees[0].fee_p == pytest.approx(0.00009)
    assert fees[2].fee_p == pytest.approx(0.000045)
    assert ledger.count("getTraderReferralInfo") == 1
    assert ledger.count("referralTiers") == 1


@pytest.mark.asyncio
async def test_trader_without_referrer_gets_no_discount() -> None:
    ledger = FakeLedger()

    discount = await _aggregator(ledger).get_trader_fee_discount(TRADER)

    assert discount == 0.0
    assert ledger.count("referralTiers") == 0


@pytest.mark.asyncio
async def test_discount_lookup_failure_falls_back_to_base_fee() -> None:
    ledger = FakeLedger(failures={"getTraderReferralInfo": RemoteUnreachableError("rpc down")})

    fees = await _aggregator(ledger).get_margin_fee(TRADER)

    assert fees[1].fee_p == pytest.approx(0.0002)


@pytest.mark.asyncio
async def test_failing_pair_fee_is_omitted() -> None:
    ledger = FakeLedger(failures={("getPairMarginFeeP", 0): RemoteUnreachableError("rpc down")})

    fees = await _aggregator(ledger).get_margin_fee()

    assert list(fees) == [1, 2]
