from __future__ import annotations

import orjson
import pytest

from avantis_trader_sdk import PriceFeedClient, PriceFeedResponse
from avantis_trader_sdk.common.exceptions import ReconnectExhaustedError
from avantis_trader_sdk.config.settings import FeedSettings
from avantis_trader_sdk.core.dto.io.feed import normalize_feed_id
from avantis_trader_sdk.core.types import FeedConnectionState
from tests.factory_builders import (
    BTC_FEED,
    ETH_FEED,
    FakeConnector,
    FakeHttpClient,
    FakeWebSocket,
    RecordingSleep,
    build_price_update_message,
    wait_until,
)


def _settings() -> FeedSettings:
    return FeedSettings(
        ws_url="wss://example.invalid/ws",
        reconnect_base_delay=0.5,
        reconnect_max_attempts=3,
    )


@pytest.mark.asyncio
async def test_stream_recovers_and_keeps_delivering_prices() -> None:
    sockets = [FakeWebSocket(), FakeWebSocket(), FakeWebSocket()]
    sleep = RecordingSleep()
    errors: list[BaseException] = []
    received: list[PriceFeedResponse] = []
    client = PriceFeedClient(
        _settings(),
        http=FakeHttpClient(),
        on_error=errors.append,
        connector=FakeConnector(sockets[0], sockets[1], ConnectionRefusedError("down"), sockets[2]),
        sleep=sleep,
    )
    client.register_price_feed_callback(BTC_FEED, received.append)
    client.register_price_feed_callback(ETH_FEED, received.append)

    async with client:
        sockets[0].push(orjson.dumps(build_price_update_message(BTC_FEED)).decode())
        await wait_until(lambda: len(received) == 1)

        # 1차 끊김: 바로 재접속 성공
        sockets[0].drop()
        await wait_until(lambda: sockets[1].sent != [])
        sockets[1].push(orjson.dumps(build_price_update_message(ETH_FEED, nested=True)).decode())
        await wait_until(lambda: len(received) == 2)

        # 2차 끊김: 한 번 실패 후 재접속 (카운터는 성공 시 초기화되어 다시 0.5초부터)
        sockets[1].drop(ConnectionResetError("reset"))
        await wait_until(lambda: sockets[2].sent != [])
        sockets[2].push(orjson.dumps(build_price_update_message(BTC_FEED)).decode())
        await wait_until(lambda: len(received) == 3)

        assert sleep.delays == [0.5, 0.5, 1.0]
        resubscribed = orjson.loads(sockets[2].sent[0])
        assert resubscribed["type"] == "subscribe"
        assert set(resubscribed["ids"]) == {normalize_feed_id(BTC_FEED), normalize_feed_id(ETH_FEED)}
        assert not any(isinstance(e, ReconnectExhaustedError) for e in errors)

    assert client.state is FeedConnectionState.DISCONNECTED
    assert all(ws.closed for ws in sockets[2:])


@pytest.mark.asyncio
async def test_stream_gives_up_after_max_attempts_and_can_be_restarted() -> None:
    first, restarted = FakeWebSocket(), FakeWebSocket()
    sleep = RecordingSleep()
    errors: list[BaseException] = []
    connector = FakeConnector(
        first,
        ConnectionRefusedError("down"),
        ConnectionRefusedError("down"),
        ConnectionRefusedError("down"),
        restarted,
    )
    client = PriceFeedClient(
        _settings(), http=FakeHttpClient(), on_error=errors.append, connector=connector, sleep=sleep
    )
    client.register_price_feed_callback(BTC_FEED, lambda feed: None)
    await client.connect()

    first.drop()
    await wait_until(lambda: any(isinstance(e, ReconnectExhaustedError) for e in errors))
    assert sleep.delays == [0.5, 1.0, 2.0]
    assert client.state is FeedConnectionState.DISCONNECTED

    # 호출자가 다시 connect() 하면 카운터가 초기화되고 구독이 복원됨
    await client.connect()
    assert client.is_connected()
    assert client.reconnect_attempts == 0
    assert orjson.loads(restarted.sent[0])["ids"] == [normalize_feed_id(BTC_FEED)]
    await client.close()
