from __future__ import annotations

import asyncio

import pytest
from websockets.exceptions import ConnectionClosedError, WebSocketException

from avantis_trader_sdk.common.exceptions import (
    FeedConnectionError,
    MalformedResponseError,
    PairNotFoundError,
    ReconnectExhaustedError,
    RemoteTimeoutError,
    RemoteUnreachableError,
    classify_exception,
)
from avantis_trader_sdk.core.types import ErrorKind


@pytest.mark.parametrize(
    "err, expected",
    [
        (RemoteTimeoutError("deadline"), (ErrorKind.REMOTE_UNREACHABLE, True)),
        (RemoteUnreachableError("rpc"), (ErrorKind.REMOTE_UNREACHABLE, True)),
        (FeedConnectionError("ws"), (ErrorKind.REMOTE_UNREACHABLE, True)),
        (MalformedResponseError("shape"), (ErrorKind.MALFORMED_RESPONSE, False)),
        (PairNotFoundError("XYZ/USD"), (ErrorKind.NOT_FOUND, False)),
        (ReconnectExhaustedError(5), (ErrorKind.RECONNECT_EXHAUSTED, False)),
        (asyncio.TimeoutError(), (ErrorKind.REMOTE_UNREACHABLE, True)),
        (ConnectionResetError(), (ErrorKind.REMOTE_UNREACHABLE, True)),
        (ConnectionClosedError(None, None), (ErrorKind.REMOTE_UNREACHABLE, True)),
        (WebSocketException("handshake"), (ErrorKind.REMOTE_UNREACHABLE, True)),
        (KeyError("from"), (ErrorKind.MALFORMED_RESPONSE, False)),
        (RuntimeError("boom"), (ErrorKind.UNKNOWN, False)),
    ],
)
def test_classify_exception_rules(err: BaseException, expected: tuple[ErrorKind, bool]) -> None:
    assert classify_exception(err) == expected


def test_reconnect_exhausted_carries_attempts() -> None:
    err = ReconnectExhaustedError(7)
    assert err.attempts == 7
    assert "7" in str(err)


def test_pair_not_found_carries_pair() -> None:
    assert PairNotFoundError(3).pair == 3
