"""제한된 횟수 재시도 (attempt별 타임아웃 + 고정 대기)"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from partsearch.core.logging import logger


T = TypeVar("T")


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    wait_s: float,
    label: str = "call",
    no_retry: Tuple[Type[BaseException], ...] = (),
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """func를 최대 attempts번 실행, 마지막 예외를 그대로 전파.

    no_retry에 해당하는 예외는 즉시 전파합니다 (예: 회로 개방).
    """
    sleeper = sleep or asyncio.sleep
    last_error: Optional[BaseException] = None
    for attempt in range(1, max(1, attempts) + 1):
        try:
            return await func()
        except no_retry:
            raise
        except Exception as e:
            last_error = e
            logger.info(f"[RETRY] {label} attempt {attempt}/{attempts} failed: {type(e).__name__}: {e}")
            if attempt < attempts and wait_s > 0:
                await sleeper(wait_s)
    assert last_error is not None
    raise last_error
