from __future__ import annotations

import orjson

from avantis_trader_sdk.core.feed.subscription_registry import SubscriptionRegistry
from tests.factory_builders import BTC_FEED, ETH_FEED


def _noop(_feed) -> None:
    return None


def test_first_observer_is_reported_once() -> None:
    registry = SubscriptionRegistry()

    _, first = registry.add(BTC_FEED, _noop)
    _, second = registry.add(BTC_FEED.upper().replace("0X", "0x"), _noop)

    assert first is True
    assert second is False
    assert len(registry.observers(BTC_FEED)) == 2


def test_same_callback_twice_gets_distinct_handles() -> None:
    registry = SubscriptionRegistry()
    a, _ = registry.add(BTC_FEED, _noop)
    b, _ = registry.add(BTC_FEED, _noop)

    assert a != b
    assert registry.remove(a)
    assert registry.observers(BTC_FEED) == (b,)
    assert not registry.remove(a)


def test_removing_last_handle_drops_feed() -> None:
    registry = SubscriptionRegistry()
    handle, _ = registry.add(BTC_FEED, _noop)
    registry.add(ETH_FEED, _noop)

    registry.remove(handle)

    assert not registry.has_observers(BTC_FEED)
    assert registry.active_feeds() == [ETH_FEED[2:]]


def test_remove_callback_removes_first_match() -> None:
    registry = SubscriptionRegistry()
    registry.add(BTC_FEED, _noop)

    assert registry.remove_callback(BTC_FEED, _noop)
    assert not registry.remove_callback(BTC_FEED, _noop)


def test_observers_returns_snapshot_copy() -> None:
    registry = SubscriptionRegistry()
    handle, _ = registry.add(BTC_FEED, _noop)
    observers = registry.observers(BTC_FEED)

    registry.remove(handle)

    assert observers == (handle,)


def test_pair_feed_table_is_replaced() -> None:
    registry = SubscriptionRegistry()
    registry.load_pair_feeds({"BTC/USD": BTC_FEED})
    registry.load_pair_feeds({"ETH/USD": ETH_FEED})

    assert registry.feed_for_pair("BTC/USD") is None
    assert registry.feed_for_pair("ETH/USD") == ETH_FEED
    assert registry.pair_feeds == {"ETH/USD": ETH_FEED}


def test_build_message_normalizes_ids() -> None:
    message = orjson.loads(SubscriptionRegistry.build_message("subscribe", [BTC_FEED]))

    assert message == {"type": "subscribe", "ids": [BTC_FEED[2:]]}
