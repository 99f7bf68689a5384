from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import aiohttp
import pytest
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from avantis_trader_sdk.common.exceptions import (
    MalformedResponseError,
    RemoteTimeoutError,
    RemoteUnreachableError,
)
from avantis_trader_sdk.config.settings import ContractSettings, RpcSettings
from avantis_trader_sdk.infra.rpc.ledger_client import Web3LedgerClient

TRADING = "0x" + "6" * 40
PAIR_STORAGE = "0x" + "2" * 40


def _client() -> Web3LedgerClient:
    return Web3LedgerClient(RpcSettings(), ContractSettings(trading=TRADING))


def test_encode_produces_selector_and_arguments() -> None:
    data = _client().encode("Trading", "closeTradeMarket", 3, 7)

    # 4바이트 selector + uint256 인자 2개
    assert data.startswith("0x")
    assert len(data) == 2 + 8 + 64 * 2
    assert data.endswith(f"{7:064x}")


def test_build_transaction_targets_checksummed_contract() -> None:
    tx = _client().build_transaction("Trading", "cancelOpenOrder", 1, 0, value=5)

    assert tx.to.lower() == TRADING
    assert tx.value == 5
    assert tx.to_tx_params()["data"] == tx.data


def test_unknown_function_is_rejected() -> None:
    with pytest.raises(Web3Exception):
        _client().encode("Trading", "noSuchFunction")


# ========================================
# call(): 데드라인 / 예외 변환
# ========================================


class _StubFunction:
    def __init__(self, outcome: Any, delay: float = 0.0) -> None:
        self._outcome = outcome
        self._delay = delay

    async def call(self) -> Any:
        if self._delay:
            await asyncio.sleep(self._delay)
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome


class _StubW3:
    """eth.contract(...).functions.<fn>(*args).call() 만 흉내내는 AsyncWeb3 대역"""

    def __init__(self, outcome: Any, delay: float = 0.0) -> None:
        self.invocations: list[tuple[str, tuple[Any, ...]]] = []
        stub = self

        class _Functions:
            def __getattr__(self, fn: str):
                def bind(*args: Any) -> _StubFunction:
                    stub.invocations.append((fn, args))
                    return _StubFunction(outcome, delay)

                return bind

        self.eth = SimpleNamespace(
            contract=lambda address, abi: SimpleNamespace(address=address, functions=_Functions())
        )


def _stubbed(
    outcome: Any, *, delay: float = 0.0, call_timeout: float = 10.0
) -> tuple[Web3LedgerClient, _StubW3]:
    w3 = _StubW3(outcome, delay)
    client = Web3LedgerClient(
        RpcSettings(call_timeout=call_timeout),
        ContractSettings(pair_storage=PAIR_STORAGE),
        w3=w3,
    )
    return client, w3


@pytest.mark.asyncio
async def test_call_returns_function_result() -> None:
    client, w3 = _stubbed(3)

    assert await client.call("PairStorage", "pairsCount", timeout=1.0) == 3
    assert w3.invocations == [("pairsCount", ())]


@pytest.mark.asyncio
async def test_call_past_deadline_raises_remote_timeout() -> None:
    client, _ = _stubbed(3, delay=5.0)

    with pytest.raises(RemoteTimeoutError):
        await client.call("PairStorage", "pairs", 0, timeout=0.01)


@pytest.mark.asyncio
async def test_call_without_deadline_uses_rpc_call_timeout() -> None:
    client, _ = _stubbed(3, delay=5.0, call_timeout=0.01)

    with pytest.raises(RemoteTimeoutError):
        await client.call("PairStorage", "pairsCount")


@pytest.mark.asyncio
async def test_bad_function_output_is_malformed_response() -> None:
    client, _ = _stubbed(BadFunctionCallOutput("could not decode"))

    with pytest.raises(MalformedResponseError):
        await client.call("PairStorage", "pairs", 0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        ContractLogicError("execution reverted"),
        aiohttp.ClientConnectionError("connection refused"),
        ConnectionRefusedError("connection refused"),
    ],
)
async def test_transport_and_revert_errors_are_remote_unreachable(error: BaseException) -> None:
    client, _ = _stubbed(error)

    with pytest.raises(RemoteUnreachableError) as exc_info:
        await client.call("PairStorage", "groupOI", 0, 0)
    assert not isinstance(exc_info.value, RemoteTimeoutError)
    assert exc_info.value.__cause__ is error
