"""
실시간 가격 피드 클라이언트

상태: disconnected → connecting → connected → disconnected
      연결이 끊기면 backoff 상태에서 대기 후 재접속합니다.

- 재접속 지연 = base_delay * 2^(attempt-1), max_attempts 초과 시 on_error(ReconnectExhaustedError)
- 연결이 열리면 시도 횟수를 0으로 되돌리고, 옵저버가 있는 모든 피드를 다시 구독합니다.
- close()는 재접속 없이 종료합니다.
- 잘못된 메시지는 로그 후 버리고, 콜백 예외는 다른 콜백에 영향을 주지 않습니다.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import Any, Iterable, Mapping

import websockets

from avantis_trader_sdk.common.exceptions import (
    FeedConnectionError,
    ReconnectExhaustedError,
    classify_exception,
)
from avantis_trader_sdk.common.logger import PipelineLogger
from avantis_trader_sdk.config.settings import FeedSettings
from avantis_trader_sdk.core.dto.internal.common import ReconnectPolicyDomain
from avantis_trader_sdk.core.dto.internal.feed import CallbackHandle
from avantis_trader_sdk.core.dto.io.feed import PriceFeedResponse, normalize_feed_id
from avantis_trader_sdk.core.feed.backoff import can_retry, compute_next_backoff
from avantis_trader_sdk.core.feed.subscription_registry import SubscriptionRegistry
from avantis_trader_sdk.core.feed.validation import parse_http_price_updates, parse_price_update
from avantis_trader_sdk.core.types import (
    CloseHook,
    Connector,
    ErrorHook,
    FeedConnectionState,
    FeedId,
    PairName,
    PriceUpdateCallback,
    RawMessage,
    SleepFunc,
    SyncOrAsyncCallable,
    feed_state_format,
)
from avantis_trader_sdk.infra.http.http_client import HttpJsonClient

logger = PipelineLogger.get_logger("feed_client", "feed")


class PriceFeedClient:
    """Pyth Hermes 호환 가격 스트림 클라이언트"""

    def __init__(
        self,
        settings: FeedSettings | None = None,
        *,
        url: str | None = None,
        http: HttpJsonClient | None = None,
        on_error: ErrorHook | None = None,
        on_close: CloseHook | None = None,
        connector: Connector | None = None,
        sleep: SleepFunc | None = None,
        policy: ReconnectPolicyDomain | None = None,
    ) -> None:
        """
        Args:
            settings: 피드 설정 (엔드포인트, 재접속 정책 기본값)
            url: 스트림 URL (미지정 시 settings.ws_url)
            http: 단발 조회용 HTTP 클라이언트
            on_error: 연결 오류 / 재접속 한도 초과 훅
            on_close: 연결 종료 훅
            connector: 웹소켓 연결 팩토리 (기본: websockets.connect)
            sleep: 재접속 대기 함수 (기본: asyncio.sleep)
            policy: 재접속 정책 (미지정 시 settings 값 사용)
        """
        self._settings = settings or FeedSettings()
        self.url = url or self._settings.ws_url
        self.policy = policy or ReconnectPolicyDomain(
            base_delay=self._settings.reconnect_base_delay,
            max_attempts=self._settings.reconnect_max_attempts,
            open_timeout=self._settings.open_timeout,
        )
        self._http = http or HttpJsonClient(timeout=self._settings.http_timeout)
        self._on_error = on_error
        self._on_close = on_close
        self._connector: Connector = connector or self._default_connect
        self._sleep: SleepFunc = sleep or asyncio.sleep

        self._state = FeedConnectionState.DISCONNECTED
        self._ws: Any = None
        self._reconnect_attempts = 0
        self._closing = False
        self._backoff_task: asyncio.Task[None] | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._send_lock = asyncio.Lock()

        self._subscriptions = SubscriptionRegistry()
        # 현재 연결에서 실제로 subscribe 전송된 피드
        self._wire_ids: set[FeedId] = set()

    # ========================================
    # 상태
    # ========================================

    @property
    def state(self) -> FeedConnectionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def subscriptions(self) -> SubscriptionRegistry:
        return self._subscriptions

    def is_connected(self) -> bool:
        return self._state is FeedConnectionState.CONNECTED and self._ws is not None

    def _set_state(self, state: FeedConnectionState) -> None:
        if state is not self._state:
            logger.debug(
                "피드 상태 전이",
                before=feed_state_format(self._state),
                after=feed_state_format(state),
            )
        self._state = state

    async def _default_connect(self, url: str) -> Any:
        return await websockets.connect(url, open_timeout=self.policy.open_timeout)

    async def _run_hook(self, hook: SyncOrAsyncCallable | None, *args: Any) -> None:
        if hook is None:
            return
        try:
            result = hook(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("피드 훅 실행 중 오류", hook=getattr(hook, "__name__", repr(hook)), error=str(e))

    # ========================================
    # 연결 수명주기
    # ========================================

    async def connect(self) -> None:
        """스트림 연결 (명시적 호출은 재접속 카운터를 초기화합니다)

        Raises:
            FeedConnectionError: 연결 수립 실패 (자동 재접속은 예약된 상태)
        """
        if self.is_connected():
            logger.info("이미 연결되어 있음", url=self.url)
            return

        self._closing = False
        self._reconnect_attempts = 0
        await self._cancel_backoff()
        await self._open()

    listen_for_price_updates = connect

    async def _open(self) -> None:
        self._set_state(FeedConnectionState.CONNECTING)
        logger.info("피드 연결 시도", url=self.url, attempt=self._reconnect_attempts)
        try:
            ws = await asyncio.wait_for(self._connector(self.url), timeout=self.policy.open_timeout)
        except asyncio.CancelledError:
            self._set_state(FeedConnectionState.DISCONNECTED)
            raise
        except Exception as e:
            kind, retryable = classify_exception(e)
            logger.warning(
                "피드 연결 실패",
                url=self.url,
                error_kind=kind.value,
                retryable=retryable,
                error=str(e),
            )
            if isinstance(e, FeedConnectionError):
                await self._handle_connection_lost(e)
                raise
            err = FeedConnectionError(f"failed to connect to {self.url}: {e}")
            await self._handle_connection_lost(err)
            raise err from e

        if self._closing:
            # 연결 중 close()가 호출된 경우
            with contextlib.suppress(Exception):
                await ws.close()
            self._set_state(FeedConnectionState.DISCONNECTED)
            return

        if self.is_connected():
            # 대기 중 다른 경로(훅의 connect 등)가 이미 연결을 수립함
            logger.info("이미 연결되어 있음 - 새 연결 폐기", url=self.url)
            with contextlib.suppress(Exception):
                await ws.close()
            return

        self._ws = ws
        self._wire_ids.clear()
        self._reconnect_attempts = 0
        self._set_state(FeedConnectionState.CONNECTED)
        logger.info("피드 연결 성공", url=self.url)

        self._receive_task = asyncio.create_task(self._receive_loop(ws))

        # 재접속 포함, 옵저버가 있는 모든 피드를 다시 구독
        active = self._subscriptions.active_feeds()
        if active:
            await self.subscribe(active)

    async def _receive_loop(self, ws: Any) -> None:
        error: BaseException | None = None
        try:
            async for raw in ws:
                await self._dispatch(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e
        finally:
            if self._receive_task is asyncio.current_task():
                self._receive_task = None

        # close() 또는 새 연결로 대체된 경우 재접속하지 않음
        if ws is not self._ws:
            return
        logger.warning("피드 연결 끊김", url=self.url, error=str(error) if error else None)
        await self._handle_connection_lost(error)

    async def _handle_connection_lost(self, err: BaseException | None) -> None:
        """오류/종료 훅 실행 후, 종료 요청이 없으면 재접속을 예약합니다."""
        self._ws = None
        self._wire_ids.clear()
        self._set_state(FeedConnectionState.DISCONNECTED)

        if err is not None:
            await self._run_hook(self._on_error, err)
        await self._run_hook(self._on_close)

        # 훅에서 connect()를 호출했다면 그 연결(또는 그 쪽에서 예약한 재접속)을 유지
        if self._closing or self._state is not FeedConnectionState.DISCONNECTED:
            return
        await self._schedule_reconnect()

    async def _schedule_reconnect(self) -> None:
        attempt = self._reconnect_attempts + 1
        if not can_retry(self.policy, attempt):
            logger.error(
                "재접속 한도 초과 - 자동 재접속 중단",
                url=self.url,
                max_attempts=self.policy.max_attempts,
            )
            self._set_state(FeedConnectionState.DISCONNECTED)
            await self._run_hook(self._on_error, ReconnectExhaustedError(self._reconnect_attempts))
            return

        self._reconnect_attempts = attempt
        delay = compute_next_backoff(self.policy, attempt)
        self._set_state(FeedConnectionState.BACKOFF)
        logger.info(f"{delay:.2f}s 후 재접속", url=self.url, attempt=attempt)
        self._backoff_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        try:
            await self._sleep(delay)
            if self._closing or self.is_connected():
                return
            await self._open()
        except FeedConnectionError as e:
            # 다음 시도는 _open() 실패 경로에서 이미 예약됨
            logger.debug("재접속 실패", attempt=self._reconnect_attempts, error=str(e))
        finally:
            if self._backoff_task is asyncio.current_task():
                self._backoff_task = None

    async def _cancel_backoff(self) -> None:
        task = self._backoff_task
        self._backoff_task = None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def close(self) -> None:
        """연결 종료 (재접속하지 않음)"""
        self._closing = True
        await self._cancel_backoff()

        ws, self._ws = self._ws, None
        receive, self._receive_task = self._receive_task, None
        self._wire_ids.clear()

        if ws is not None:
            try:
                await ws.close()
            except Exception as close_error:
                logger.warning("웹소켓 종료 실패", error=str(close_error))

        if receive and not receive.done() and receive is not asyncio.current_task():
            receive.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await receive

        self._set_state(FeedConnectionState.DISCONNECTED)
        if ws is not None:
            await self._run_hook(self._on_close)

        await self._http.close()
        logger.info("피드 클라이언트 종료", url=self.url)

    async def __aenter__(self) -> PriceFeedClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ========================================
    # 옵저버 / 구독
    # ========================================

    def register_price_feed_callback(
        self, feed_id: FeedId, callback: PriceUpdateCallback
    ) -> CallbackHandle:
        """옵저버 등록 (구독 전송은 연결 시 또는 subscribe / sync_subscriptions 호출 시)"""
        handle, first = self._subscriptions.add(feed_id, callback)
        logger.debug("콜백 등록", feed_id=handle.feed_id, first_observer=first)
        return handle

    def unregister_price_feed_callback(self, handle: CallbackHandle) -> bool:
        return self._subscriptions.remove(handle)

    def remove_callback(self, feed_id: FeedId, callback: PriceUpdateCallback) -> bool:
        return self._subscriptions.remove_callback(feed_id, callback)

    async def _send(self, message: str) -> bool:
        async with self._send_lock:
            ws = self._ws
            if ws is None or not self.is_connected():
                logger.warning("연결되어 있지 않아 전송 생략")
                return False
            try:
                await ws.send(message)
            except Exception as e:
                # 끊긴 연결은 수신 루프가 감지해서 재접속 흐름으로 넘깁니다.
                logger.warning("구독 메시지 전송 실패", error=str(e))
                return False
            return True

    async def subscribe(self, feed_ids: Iterable[FeedId]) -> bool:
        ids = [normalize_feed_id(f) for f in feed_ids]
        if not ids:
            return True
        if not await self._send(self._subscriptions.build_message("subscribe", ids)):
            return False
        self._wire_ids.update(ids)
        logger.info("가격 피드 구독", count=len(ids))
        return True

    async def unsubscribe(self, feed_ids: Iterable[FeedId]) -> bool:
        ids = [normalize_feed_id(f) for f in feed_ids]
        if not ids:
            return True
        if not await self._send(self._subscriptions.build_message("unsubscribe", ids)):
            return False
        self._wire_ids.difference_update(ids)
        logger.info("가격 피드 구독 해지", count=len(ids))
        return True

    async def sync_subscriptions(self) -> bool:
        """옵저버 상태와 전송된 구독을 맞춤 (신규 subscribe, 빈 피드 unsubscribe)"""
        active = self._subscriptions.active_feeds()
        to_add = [f for f in active if f not in self._wire_ids]
        to_remove = sorted(self._wire_ids.difference(active))
        added = await self.subscribe(to_add)
        removed = await self.unsubscribe(to_remove)
        return added and removed

    def load_pair_feeds(self, pair_feeds: Mapping[PairName, FeedId]) -> None:
        self._subscriptions.load_pair_feeds(pair_feeds)

    def get_feed_id_for_pair(self, pair_name: PairName) -> FeedId | None:
        return self._subscriptions.feed_for_pair(pair_name)

    # ========================================
    # 메시지 처리
    # ========================================

    async def _dispatch(self, raw: RawMessage) -> None:
        decision = parse_price_update(raw)
        if decision.kind == "ignored":
            logger.debug("가격 업데이트 외 메시지", message_type=decision.message_type)
            return
        if decision.kind == "malformed" or decision.feed is None:
            logger.warning("잘못된 가격 메시지 폐기", reason=decision.reason)
            return

        feed = decision.feed
        for handle in self._subscriptions.observers(feed.id):
            try:
                result = handle.callback(feed)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "가격 콜백 실행 중 오류",
                    feed_id=feed.id,
                    token=handle.token,
                    error=str(e),
                )

    async def get_latest_price_updates(
        self, feed_ids: Iterable[FeedId], timeout: float | None = None
    ) -> list[PriceFeedResponse]:
        """HTTP 단발 조회 (ids[] 반복 쿼리)"""
        params = [("ids[]", normalize_feed_id(f)) for f in feed_ids]
        document = await self._http.get_json(self._settings.http_url, params=params, timeout=timeout)
        return parse_http_price_updates(document)
