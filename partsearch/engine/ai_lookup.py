"""AI 협력자 래퍼 (재시도 + 회로차단 + 캐시 + 허용 목록 검증)

호출자는 예외를 보지 않습니다. 타임아웃, 잘못된 JSON, 알 수 없는 카테고리 코드,
회로 개방 모두 '응답 없음'(None / 빈 dict)으로 변환됩니다.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Protocol, Sequence, TypeVar

from partsearch.core.config import settings
from partsearch.core.exceptions import CircuitOpenException
from partsearch.core.logging import logger
from partsearch.engine.circuit_breaker import CircuitBreaker
from partsearch.engine.retry import retry_async
from partsearch.utils.text import normalize_key


T = TypeVar("T")


class CategoryClassifier(Protocol):
    async def suggest_category(self, identifier: str) -> str:
        ...

    async def classify(self, text: str, captions: Sequence[str] = ()) -> Dict[str, Any]:
        ...


def make_breaker(name: str) -> CircuitBreaker:
    return CircuitBreaker(
        name=name,
        failure_rate_threshold=settings.ai_breaker_failure_rate,
        window_size=settings.ai_breaker_window_size,
        min_calls=settings.ai_breaker_min_calls,
        open_duration_sec=settings.ai_breaker_open_seconds,
        half_open_max_calls=settings.ai_breaker_half_open_calls,
    )


class ResilientClassifier:
    """CategoryClassifier + 목적별 CircuitBreaker 두 개 (category / classify)."""

    def __init__(
        self,
        classifier: CategoryClassifier,
        vendor: str,
        *,
        valid_codes: Iterable[str] = (),
        attempts: Optional[int] = None,
        wait_s: Optional[float] = None,
        timeout_s: Optional[float] = None,
        category_breaker: Optional[CircuitBreaker] = None,
        classify_breaker: Optional[CircuitBreaker] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self.classifier = classifier
        self.vendor = vendor
        self.valid_codes = frozenset(c for c in valid_codes if c)
        self.attempts = attempts or settings.ai_retry_attempts
        self.wait_s = settings.ai_retry_wait_s if wait_s is None else wait_s
        self.timeout_s = timeout_s or settings.ai_timeout_s
        self.category_breaker = category_breaker or make_breaker(f"{vendor}-ai-category")
        self.classify_breaker = classify_breaker or make_breaker(f"{vendor}-ai-classify")
        self._sleep = sleep
        self._cache: Dict[str, str] = {}

    async def _guarded(self, breaker: CircuitBreaker, label: str, func: Callable[[], Awaitable[T]]) -> T:
        async def attempt() -> T:
            return await breaker.call(lambda: asyncio.wait_for(func(), timeout=self.timeout_s))

        return await retry_async(
            attempt,
            attempts=self.attempts,
            wait_s=self.wait_s,
            label=label,
            no_retry=(CircuitOpenException,),
            sleep=self._sleep,
        )

    async def suggest_category(self, identifier: str) -> Optional[str]:
        key = normalize_key(identifier)
        if not key:
            return None
        cached = self._cache.get(key)
        if cached:
            logger.debug(f"[AI] {self.vendor} category cache hit: {key} -> {cached}")
            return cached

        try:
            answer = await self._guarded(
                self.category_breaker,
                f"{self.vendor} suggest_category",
                lambda: self.classifier.suggest_category(key),
            )
        except CircuitOpenException as e:
            logger.info(f"[AI] {self.vendor} category lookup skipped: {e}")
            return None
        except Exception as e:
            logger.warning(f"[AI] {self.vendor} category lookup failed for {key}: {type(e).__name__}: {e}")
            return None

        code = (answer or "").strip()
        if not code or code not in self.valid_codes:
            logger.warning(f"[AI] {self.vendor} ignoring unrecognized category {code!r} for {key}")
            return None
        self._cache[key] = code
        logger.info(f"[AI] {self.vendor} category for {key}: {code}")
        return code

    async def classify(self, text: str, captions: Sequence[str] = ()) -> Dict[str, Any]:
        if not text or not text.strip():
            return {}
        try:
            answer = await self._guarded(
                self.classify_breaker,
                f"{self.vendor} classify",
                lambda: self.classifier.classify(text.strip(), captions),
            )
        except CircuitOpenException as e:
            logger.info(f"[AI] {self.vendor} classification skipped: {e}")
            return {}
        except Exception as e:
            logger.warning(f"[AI] {self.vendor} classification failed: {type(e).__name__}: {e}")
            return {}
        if not isinstance(answer, dict):
            logger.warning(f"[AI] {self.vendor} classification returned {type(answer).__name__}, ignored")
            return {}
        return answer
