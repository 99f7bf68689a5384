from __future__ import annotations

import logging
import queue
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from avantis_trader_sdk.config.settings import logging_settings

# logging.LogRecord 예약 속성과 충돌하는 extra 키는 접두사를 붙여 보존합니다.
_RESERVED_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class PipelineLogger:
    """
    SDK 컴포넌트별 로깅 시스템
    큐 기반 비동기 처리, 컴포넌트 태깅, 구조화된 extra 컨텍스트 제공
    """

    _default_level = logging.INFO

    @classmethod
    def get_logger(cls, name: str, component: str | None = None, **kwargs) -> PipelineLogger:
        """
        로거 인스턴스를 반환하는 간단한 팩토리 메서드.
        파일/콘솔 출력 여부는 LoggingSettings 기본값을 따릅니다.
        """
        kwargs.setdefault("log_to_file", logging_settings.to_file)
        kwargs.setdefault("log_to_console", logging_settings.to_console)
        kwargs.setdefault("log_dir", logging_settings.dir)
        kwargs.setdefault(
            "level", logging.getLevelName(logging_settings.level.upper())
        )
        return cls(name, component, **kwargs)

    def __init__(
        self,
        name: str,
        component: str | None = None,
        level: int | str | None = None,
        log_to_file: bool = False,
        log_to_console: bool = True,
        log_dir: str = "logs",
        rotation: str = "midnight",
    ):
        """
        로거 초기화

        Args:
            name: 로거 이름
            component: 컴포넌트 이름 (market, feed, infra ...)
            level: 로깅 레벨
            log_to_file: 파일에 로깅 여부
            log_to_console: 콘솔에 로깅 여부
            log_dir: 로그 디렉토리
            rotation: 로그 로테이션 주기
        """
        self.name = name
        self.component = component
        self.level = level if isinstance(level, int) else self._default_level
        self.log_to_file = log_to_file
        self.log_to_console = log_to_console
        self.log_dir = log_dir
        self.rotation = rotation

        self.log_queue: queue.Queue = queue.Queue()

        self._setup_logger()

    def _setup_logger(self) -> None:
        """
        로거, 핸들러, 포맷터 설정
        """
        self.logger_name = (
            f"avantis_trader_sdk.{self.name}.{self.component}"
            if self.component
            else f"avantis_trader_sdk.{self.name}"
        )
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(self.level)
        self.logger.propagate = False

        if self.logger.hasHandlers():
            self.logger.handlers.clear()

        self.formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(component)s] %(message)s"
        )

        handlers: list[logging.Handler] = []

        if self.log_to_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(self.formatter)
            handlers.append(console)

        if self.log_to_file:
            log_filename = self._get_log_filename()
            Path(log_filename).parent.mkdir(parents=True, exist_ok=True)

            file_handler = TimedRotatingFileHandler(
                filename=log_filename,
                when=self.rotation,
                backupCount=7,
            )
            file_handler.setFormatter(self.formatter)
            handlers.append(file_handler)

        self.queue_handler = QueueHandler(self.log_queue)
        self.logger.addHandler(self.queue_handler)

        self.listener = QueueListener(self.log_queue, *handlers, respect_handler_level=True)
        self.listener.start()

    def _get_log_filename(self) -> str:
        today = datetime.now().strftime("%Y-%m-%d")
        component_part = f"{self.component}/" if self.component else ""
        return f"{self.log_dir}/{component_part}{self.name}_{today}.log"

    def _process_message(self, level: int, msg: str, extra: dict[str, Any] | None = None) -> None:
        """
        메시지 처리 및 로깅

        kwargs 중 exc_info/stack_info는 logger.log()의 파라미터로,
        'extra' 딕셔너리는 풀어서, 나머지는 그대로 레코드 속성으로 병합합니다.
        """
        log_extra: dict[str, Any] = {"component": self.component or "sdk"}

        exc_info_param = None
        stack_info_param = False

        if extra:
            exc_info_param = extra.pop("exc_info", None)
            stack_info_param = bool(extra.pop("stack_info", False))

            nested_extra = extra.pop("extra", None)
            if isinstance(nested_extra, dict):
                log_extra.update(nested_extra)

            log_extra.update(extra)

        safe_extra = {
            (f"ctx_{key}" if key in _RESERVED_RECORD_KEYS else key): value
            for key, value in log_extra.items()
        }
        self.logger.log(
            level, msg, exc_info=exc_info_param, stack_info=stack_info_param, extra=safe_extra
        )

    def debug(self, msg: str, **kwargs) -> None:
        self._process_message(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self._process_message(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs) -> None:
        self._process_message(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs) -> None:
        self._process_message(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs) -> None:
        self._process_message(logging.CRITICAL, msg, kwargs)

    def close(self) -> None:
        """
        리소스 정리
        """
        self.listener.stop()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass
