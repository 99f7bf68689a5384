from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Hashable, Iterable, TypeVar

from avantis_trader_sdk.common.exceptions import classify_exception
from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.core.types import ErrorKind

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


async def gather_per_entity(
    keys: Iterable[K],
    fetch: Callable[[K], Awaitable[V]],
    *,
    entity: str,
    logger: PipelineLogger,
) -> dict[K, V]:
    """엔티티(그룹/페어)별 독립 동시 조회

    한 엔티티의 실패는 로그를 남기고 결과에서 빠질 뿐, 다른 엔티티에 영향을 주지 않습니다.
    반환 dict는 keys 순서를 유지합니다.
    """
    ordered = list(keys)
    results = await asyncio.gather(*(fetch(k) for k in ordered), return_exceptions=True)

    collected: dict[K, V] = {}
    for key, result in zip(ordered, results):
        if isinstance(result, Exception):
            kind, retryable = classify_exception(result)
            logger.warning(
                f"{entity} 조회 실패 - 결과에서 제외",
                entity=entity,
                key=key,
                error_kind=ErrorKind.PARTIAL_AGGREGATION.value,
                cause_kind=kind.value,
                retryable=retryable,
                error=str(result),
            )
            continue
        if isinstance(result, BaseException):
            raise result
        collected[key] = result
    return collected


async def gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """모두 성공하면 결과 리스트, 하나라도 실패하면 나머지를 취소하고 예외 전파"""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
