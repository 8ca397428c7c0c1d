"""Circuit Breaker + Metrics (Closed → Open → Half-Open)

AI 분류기처럼 느리거나 불안정한 외부 협력자를 감쌉니다.
- 최근 N회 호출의 실패율이 임계값을 넘으면 개방
- 개방 중에는 네트워크 호출 없이 즉시 CircuitOpenException
- open_duration_sec 경과 후 Half-Open으로 전이, 제한된 probe 호출 결과로 닫거나 다시 개방
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Deque, Optional, TypeVar

from partsearch.core.exceptions import CircuitOpenException
from partsearch.core.logging import logger


T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerMetrics:
    """호출 결과 누적 카운터."""

    successes: int = 0
    failures: int = 0
    rejections: int = 0
    opened: int = 0

    def record_success(self) -> None:
        self.successes += 1

    def record_failure(self) -> None:
        self.failures += 1

    def record_rejection(self) -> None:
        self.rejections += 1

    @property
    def success_rate(self) -> float:
        """성공률 (0.0~1.0)."""
        total = self.successes + self.failures
        return self.successes / total if total > 0 else 0.0

    def __repr__(self) -> str:
        return (
            f"Metrics({self.successes}S/{self.failures}F={self.success_rate:.1%}, "
            f"rejected={self.rejections}, opened={self.opened})"
        )


class CircuitBreaker:
    """실패율 기반 Circuit Breaker.

    시계(clock)는 주입 가능하며 기본값은 time.monotonic 입니다.
    """

    def __init__(
        self,
        name: str = "default",
        failure_rate_threshold: float = 0.5,
        window_size: int = 10,
        min_calls: int = 4,
        open_duration_sec: float = 60.0,
        half_open_max_calls: int = 1,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """초기화.

        Args:
            name: 로그용 이름
            failure_rate_threshold: 개방 임계 실패율 (0~1]
            window_size: 실패율 계산에 쓰는 최근 호출 수
            min_calls: 실패율을 평가하기 위한 최소 호출 수
            open_duration_sec: 개방 상태 유지 시간 (초)
            half_open_max_calls: Half-Open에서 허용하는 probe 호출 수
        """
        self.name = name
        self.failure_rate_threshold = failure_rate_threshold
        self.window_size = max(1, window_size)
        self.min_calls = max(1, min(min_calls, self.window_size))
        self.open_duration_sec = open_duration_sec
        self.half_open_max_calls = max(1, half_open_max_calls)
        self._clock = clock or time.monotonic

        self._state = CircuitState.CLOSED
        self._window: Deque[bool] = deque(maxlen=self.window_size)
        self._open_until: float = 0.0
        self._half_open_in_flight = 0
        self._half_open_successes = 0
        self.metrics = CircuitBreakerMetrics()

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and self._clock() >= self._open_until:
            self._transition(CircuitState.HALF_OPEN)
        return self._state

    def failure_rate(self) -> float:
        if not self._window:
            return 0.0
        return self._window.count(False) / len(self._window)

    def is_open(self) -> bool:
        """회로가 개방되었는가? (Half-Open에서 probe 슬롯이 없으면 개방으로 간주)"""
        state = self.state
        if state == CircuitState.OPEN:
            return True
        if state == CircuitState.HALF_OPEN:
            return self._half_open_in_flight >= self.half_open_max_calls
        return False

    def get_remaining_open_time(self) -> float:
        """회로 개방 남은 시간 (초)."""
        if self._state != CircuitState.OPEN:
            return 0.0
        return max(0.0, self._open_until - self._clock())

    def record_success(self) -> None:
        self.metrics.record_success()
        if self._state == CircuitState.HALF_OPEN:
            self._half_open_in_flight = max(0, self._half_open_in_flight - 1)
            self._half_open_successes += 1
            if self._half_open_successes >= self.half_open_max_calls:
                self._transition(CircuitState.CLOSED)
            return
        self._window.append(True)

    def record_failure(self) -> None:
        self.metrics.record_failure()
        if self._state == CircuitState.HALF_OPEN:
            self._half_open_in_flight = max(0, self._half_open_in_flight - 1)
            self._transition(CircuitState.OPEN)
            return
        self._window.append(False)
        if len(self._window) >= self.min_calls and self.failure_rate() >= self.failure_rate_threshold:
            self._transition(CircuitState.OPEN)

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """func 실행. 개방 상태면 호출하지 않고 CircuitOpenException."""
        if self.is_open():
            self.metrics.record_rejection()
            raise CircuitOpenException(self.name, self.get_remaining_open_time())
        if self._state == CircuitState.HALF_OPEN:
            self._half_open_in_flight += 1
        try:
            result = await func()
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def _transition(self, target: CircuitState) -> None:
        previous = self._state
        if previous == target:
            return
        self._state = target
        if target == CircuitState.OPEN:
            self._open_until = self._clock() + self.open_duration_sec
            self._half_open_in_flight = 0
            self._half_open_successes = 0
            self.metrics.opened += 1
            logger.warning(
                f"[CIRCUIT_BREAKER] {self.name} OPEN (failure_rate={self.failure_rate():.0%}, "
                f"threshold={self.failure_rate_threshold:.0%}). Blocked for {self.open_duration_sec}s"
            )
        elif target == CircuitState.HALF_OPEN:
            self._half_open_in_flight = 0
            self._half_open_successes = 0
            logger.info(f"[CIRCUIT_BREAKER] {self.name} HALF_OPEN (probing)")
        else:
            self._window.clear()
            self._open_until = 0.0
            logger.info(f"[CIRCUIT_BREAKER] {self.name} CLOSED (recovered)")

    def __repr__(self) -> str:
        return (
            f"CircuitBreaker({self.name}, {self.state.value.upper()}, "
            f"failure_rate={self.failure_rate():.0%}, open_time={self.get_remaining_open_time():.1f}s)"
        )
