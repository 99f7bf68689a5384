"""
페어 레지스트리 (pair index ↔ 메타데이터 캐시)

- 첫 사용 또는 force_refresh 시 원장에서 전체 페어를 읽어 새 epoch를 만들고 한 번에 교체합니다.
- 조회 실패 시 기존 epoch는 그대로 유지되고 예외가 전파됩니다.
- 동시에 들어온 첫 사용 호출들은 하나의 조회 결과를 공유합니다 (단일 writer).
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from avantis_trader_sdk.common.exceptions import MalformedResponseError
from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.config.settings import FeedSettings
from avantis_trader_sdk.core.decimals import from_blockchain6, from_blockchain10
from avantis_trader_sdk.core.dto.internal.registry import PairCacheState
from avantis_trader_sdk.core.dto.io.market import PairInfo, Spread
from avantis_trader_sdk.core.types import FeedId, GroupIndex, PairIndex, PairName
from avantis_trader_sdk.infra.http.http_client import HttpJsonClient
from avantis_trader_sdk.infra.rpc.abi import PAIR_FIELDS
from avantis_trader_sdk.infra.rpc.ledger_client import LedgerClient

logger = PipelineLogger.get_logger("pairs_cache", "market")


def decode_pair(raw: Mapping[str, Any] | Sequence[Any]) -> PairInfo:
    """pairs(i) 응답 → PairInfo

    응답은 필드명 매핑 또는 ABI 출력 순서의 tuple 둘 다 허용합니다.
    스프레드는 단일 spreadP 값을 min/max 모두에 사용합니다.
    """
    fields: Mapping[str, Any]
    if isinstance(raw, Mapping):
        fields = raw
    else:
        if len(raw) < len(PAIR_FIELDS):
            raise MalformedResponseError(
                f"pair tuple has {len(raw)} fields, expected {len(PAIR_FIELDS)}"
            )
        fields = dict(zip(PAIR_FIELDS, raw))

    try:
        spread_p = from_blockchain10(fields.get("spreadP") or 0)
        return PairInfo(
            from_=str(fields["from"]),
            to=str(fields["to"]),
            spread=Spread(min=spread_p, max=spread_p),
            group_index=int(fields["groupIndex"]),
            fee_index=int(fields["feeIndex"]),
            max_leverage=from_blockchain10(fields["maxLeverage"]),
            max_open_interest_usdc=from_blockchain6(fields.get("maxOpenInterestUsdc") or 0),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise MalformedResponseError(f"malformed pair record: {e}") from e


def pair_feeds_from_socket_document(document: Any) -> dict[PairName, FeedId]:
    """페어 정보 REST 문서 → {"BTC/USD": feed id}

    문서 형태: {"data": {"pairInfos": {"0": {"from": ..., "to": ..., "feed": {"feedId": ...}}}}}
    pairInfos는 dict 또는 list 모두 허용하며, feed id가 없는 항목은 건너뜁니다.
    """
    if not isinstance(document, Mapping):
        raise MalformedResponseError("pair info document must be an object")

    body = document.get("data", document)
    infos = body.get("pairInfos") if isinstance(body, Mapping) else None
    if isinstance(infos, Mapping):
        items = list(infos.values())
    elif isinstance(infos, list):
        items = infos
    else:
        raise MalformedResponseError("pair info document has no pairInfos")

    feeds: dict[PairName, FeedId] = {}
    for item in items:
        if not isinstance(item, Mapping) or "from" not in item or "to" not in item:
            continue
        feed = item.get("feed")
        feed_id = feed.get("feedId") if isinstance(feed, Mapping) else item.get("feedId")
        if not feed_id:
            continue
        feeds[f"{item['from']}/{item['to']}"] = str(feed_id)
    return feeds


class PairRegistry:
    """페어 캐시의 유일한 writer

    읽기는 항상 현재 epoch 한 개를 기준으로 수행하므로,
    pairs와 이름 인덱스가 서로 다른 fetch에서 섞여 보이는 일은 없습니다.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        http: HttpJsonClient | None = None,
        feed_settings: FeedSettings | None = None,
    ) -> None:
        self._ledger = ledger
        self._http = http
        self._feed_settings = feed_settings or FeedSettings()
        self._state: PairCacheState | None = None
        self._epoch = 0
        self._lock = asyncio.Lock()

    @property
    def cached_state(self) -> PairCacheState | None:
        """조회를 유발하지 않는 현재 epoch (없으면 None)"""
        return self._state

    async def _fetch_state(self, timeout: float | None) -> PairCacheState:
        count = int(await self._ledger.call("PairStorage", "pairsCount", timeout=timeout))
        if count < 0:
            raise MalformedResponseError(f"negative pairsCount: {count}")

        raws = await asyncio.gather(
            *(self._ledger.call("PairStorage", "pairs", i, timeout=timeout) for i in range(count))
        )
        pairs = {i: decode_pair(raw) for i, raw in enumerate(raws)}

        try:
            return PairCacheState.build(pairs, epoch=self._epoch + 1)
        except ValueError as e:
            raise MalformedResponseError(str(e)) from e

    async def resolve(
        self, force_refresh: bool = False, timeout: float | None = None
    ) -> PairCacheState:
        """현재 epoch 반환 (없거나 force_refresh면 새로 조회해서 교체)"""
        seen = self._state
        if seen is not None and not force_refresh:
            return seen

        async with self._lock:
            current = self._state
            # 대기하는 동안 다른 호출이 이미 채웠거나 갱신했다면 그 결과를 공유
            if current is not None and (not force_refresh or current is not seen):
                return current

            try:
                state = await self._fetch_state(timeout)
            except Exception as e:
                logger.error(
                    "페어 정보 조회 실패 - 기존 캐시 유지",
                    error=str(e),
                    kept_epoch=current.epoch if current else None,
                )
                raise

            self._epoch = state.epoch
            self._state = state
            logger.info("페어 캐시 갱신", epoch=state.epoch, pairs=len(state))
            return state

    async def get_pairs_info(
        self, force_refresh: bool = False, timeout: float | None = None
    ) -> dict[PairIndex, PairInfo]:
        """{pair_index: PairInfo} (인덱스 오름차순)"""
        state = await self.resolve(force_refresh, timeout)
        return dict(state.pairs)

    async def get_pair_index(
        self, pair_name: PairName, timeout: float | None = None
    ) -> PairIndex | None:
        state = await self.resolve(timeout=timeout)
        return state.name_index.get(pair_name)

    async def get_pair_name(
        self, pair_index: PairIndex, timeout: float | None = None
    ) -> PairName | None:
        state = await self.resolve(timeout=timeout)
        info = state.pairs.get(pair_index)
        return info.name if info else None

    async def get_pair_by_index(
        self, pair_index: PairIndex, timeout: float | None = None
    ) -> PairInfo | None:
        state = await self.resolve(timeout=timeout)
        return state.pairs.get(pair_index)

    async def get_group_indexes(self, timeout: float | None = None) -> list[GroupIndex]:
        """중복 없는 그룹 인덱스 (오름차순)"""
        state = await self.resolve(timeout=timeout)
        return list(state.group_indexes)

    async def get_pairs_in_group(
        self, group_index: GroupIndex, timeout: float | None = None
    ) -> list[PairIndex]:
        state = await self.resolve(timeout=timeout)
        return state.pairs_in_group(group_index)

    def invalidate(self) -> None:
        """캐시 epoch 폐기 (다음 조회 시 다시 채움)"""
        self._state = None

    clear_cache = invalidate

    async def get_pair_info_from_socket(self, timeout: float | None = None) -> Any:
        """페어 정보 REST 문서 원본"""
        if self._http is None:
            raise RuntimeError("PairRegistry was created without an HTTP client")
        return await self._http.get_json(self._feed_settings.socket_api_url, timeout=timeout)

    async def get_pair_feeds_from_socket(
        self, timeout: float | None = None
    ) -> dict[PairName, FeedId]:
        document = await self.get_pair_info_from_socket(timeout)
        return pair_feeds_from_socket_document(document)
