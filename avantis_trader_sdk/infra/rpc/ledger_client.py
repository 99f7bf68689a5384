"""
온체인 원장(ledger) 클라이언트

- LedgerClient: 컨트랙트 read / calldata 인코딩 추상 인터페이스
- Web3LedgerClient: web3 AsyncWeb3 기반 구현

모든 read는 데드라인을 가지며, 라이브러리 예외는 SDK 예외로 변환됩니다.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Mapping

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract import AsyncContract
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from avantis_trader_sdk.common.exceptions import (
    MalformedResponseError,
    RemoteTimeoutError,
    RemoteUnreachableError,
)
from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.config.settings import ContractSettings, RpcSettings
from avantis_trader_sdk.core.dto.io.trade import UnsignedTransaction
from avantis_trader_sdk.core.types import ContractName
from avantis_trader_sdk.infra.rpc.abi import DEFAULT_ABIS, AbiEntry

logger = PipelineLogger.get_logger("ledger_client", "infra")


class LedgerClient(ABC):
    """컨트랙트 read 및 calldata 인코딩 인터페이스"""

    @abstractmethod
    async def call(
        self,
        contract: ContractName,
        fn: str,
        *args: Any,
        timeout: float | None = None,
    ) -> Any:
        """view 함수 호출 (데드라인 초과 시 RemoteTimeoutError)"""
        ...

    @abstractmethod
    def encode(self, contract: ContractName, fn: str, *args: Any) -> str:
        """함수 호출 calldata (0x hex)"""
        ...

    @abstractmethod
    def address_of(self, contract: ContractName) -> str:
        ...

    async def close(self) -> None:
        return None

    def build_transaction(
        self,
        contract: ContractName,
        fn: str,
        *args: Any,
        value: int = 0,
    ) -> UnsignedTransaction:
        """서명 전 트랜잭션 페이로드 {to, data, value}"""
        return UnsignedTransaction(
            to=self.address_of(contract),
            data=self.encode(contract, fn, *args),
            value=value,
        )


class Web3LedgerClient(LedgerClient):
    """web3 AsyncWeb3 기반 LedgerClient

    컨트랙트 객체는 이름별로 한 번만 만들어 재사용합니다.
    """

    def __init__(
        self,
        rpc: RpcSettings,
        contracts: ContractSettings,
        abis: Mapping[ContractName, list[AbiEntry]] | None = None,
        w3: AsyncWeb3 | None = None,
    ) -> None:
        self._rpc = rpc
        self._contracts = contracts
        self._abis: Mapping[ContractName, list[AbiEntry]] = abis or DEFAULT_ABIS
        self._w3 = w3 or AsyncWeb3(
            AsyncHTTPProvider(rpc.provider_url, request_kwargs={"timeout": rpc.call_timeout})
        )
        self._instances: dict[ContractName, AsyncContract] = {}

    @property
    def w3(self) -> AsyncWeb3:
        return self._w3

    def address_of(self, contract: ContractName) -> str:
        return AsyncWeb3.to_checksum_address(self._contracts.address_of(contract))

    def _contract(self, name: ContractName) -> AsyncContract:
        instance = self._instances.get(name)
        if instance is None:
            if name not in self._abis:
                raise KeyError(f"no ABI registered for contract {name}")
            instance = self._w3.eth.contract(address=self.address_of(name), abi=self._abis[name])
            self._instances[name] = instance
        return instance

    async def call(
        self,
        contract: ContractName,
        fn: str,
        *args: Any,
        timeout: float | None = None,
    ) -> Any:
        deadline = timeout if timeout is not None else self._rpc.call_timeout
        function = getattr(self._contract(contract).functions, fn)(*args)
        try:
            async with asyncio.timeout(deadline):
                return await function.call()
        except TimeoutError as e:
            logger.warning(
                "컨트랙트 호출 타임아웃", contract=contract, fn=fn, timeout=deadline
            )
            raise RemoteTimeoutError(f"{contract}.{fn} timed out after {deadline}s") from e
        except BadFunctionCallOutput as e:
            raise MalformedResponseError(f"{contract}.{fn} returned malformed output: {e}") from e
        except (ContractLogicError, Web3Exception, aiohttp.ClientError, OSError) as e:
            logger.warning("컨트랙트 호출 실패", contract=contract, fn=fn, error=str(e))
            raise RemoteUnreachableError(f"{contract}.{fn} failed: {e}") from e

    def encode(self, contract: ContractName, fn: str, *args: Any) -> str:
        return self._contract(contract).encode_abi(fn, args=list(args))

    async def close(self) -> None:
        """프로바이더 HTTP 세션 정리"""
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
