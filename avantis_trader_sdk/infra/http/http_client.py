"""
HTTP JSON 클라이언트

가격 단발 조회(HTTP fallback)와 페어 정보 REST 문서 조회에 사용합니다.
세션은 처음 요청할 때 만들어 재사용하며, close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import aiohttp

from avantis_trader_sdk.common.exceptions import (
    MalformedResponseError,
    RemoteTimeoutError,
    RemoteUnreachableError,
)
from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.common.serde import loads

logger = PipelineLogger.get_logger("http_client", "infra")

QueryParams = Mapping[str, str] | Sequence[tuple[str, str]]


@dataclass(slots=True)
class HttpJsonClient:
    """
    aiohttp 기반 JSON GET 클라이언트

    예외 변환:
        - 연결 실패 / HTTP 4xx, 5xx -> RemoteUnreachableError
        - 데드라인 초과 -> RemoteTimeoutError
        - JSON 파싱 실패 -> MalformedResponseError
    """

    timeout: float = 10.0
    _session: aiohttp.ClientSession | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> HttpJsonClient:
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """HTTP 세션을 생성하거나 재사용합니다."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Accept": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        """HTTP 세션을 종료합니다."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_json(
        self,
        url: str,
        params: QueryParams | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        GET 요청 후 JSON 본문을 반환합니다.

        Args:
            url: 요청 URL
            params: 쿼리 파라미터 (반복 키는 (key, value) 튜플 시퀀스로 전달)
            timeout: 요청 데드라인 (초, 기본: 생성 시 timeout)
        """
        session = await self._ensure_session()
        deadline = timeout if timeout is not None else self.timeout

        try:
            async with asyncio.timeout(deadline):
                async with session.get(url, params=params) as response:
                    body = await response.read()
                    if response.status >= 400:
                        raise RemoteUnreachableError(
                            f"GET {url} failed: HTTP {response.status} {response.reason}"
                        )
        except TimeoutError as e:
            logger.warning("HTTP 요청 타임아웃", url=url, timeout=deadline)
            raise RemoteTimeoutError(f"GET {url} timed out after {deadline}s") from e
        except aiohttp.ClientError as e:
            logger.warning("HTTP 요청 실패", url=url, error=str(e))
            raise RemoteUnreachableError(f"GET {url} failed: {e}") from e

        try:
            return loads(body)
        except MalformedResponseError:
            logger.warning("HTTP 응답 JSON 파싱 실패", url=url, size=len(body))
            raise
