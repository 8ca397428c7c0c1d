"""세션 워밍업 (엔트리 페이지 핸드셰이크)

일부 벤더(TDK)는 검색 API에 HTML 엔트리 페이지에 박혀있는 상수(site/group/design)와
안티봇 쿠키(bm_*)를 요구합니다. 엔진 인스턴스당 한 번만 엔트리 페이지를 스트리밍해서
상수를 추출하고, 실패하면 설정된 기본값을 그대로 사용합니다 (워밍업 실패는 치명적이지 않음).

동시에 들어온 첫 요청들은 모두 하나의 Task를 함께 기다립니다.
"""

from __future__ import annotations

import asyncio
import re
from typing import Mapping, Optional, Sequence

from partsearch.core.config import settings
from partsearch.core.logging import logger
from partsearch.crawlers.http_client import HttpExecutor
from partsearch.engine.session import SessionContext


def constant_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf'{re.escape(name)}\s*:\s*"([^"]+)"')


def extract_constants(text: str, names: Sequence[str], defaults: Mapping[str, str]) -> dict[str, str]:
    """`name: "value"` 형태 상수 추출, 실패 시 기본값"""
    found: dict[str, str] = {}
    for name in names:
        match = constant_pattern(name).search(text or "")
        found[name] = match.group(1) if match else defaults.get(name, "")
    return found


def has_all_markers(text: str, names: Sequence[str]) -> bool:
    return all(f"{name}:" in text for name in names)


class SessionWarmup:
    def __init__(
        self,
        http: HttpExecutor,
        session: SessionContext,
        entry_url: str,
        constant_names: Sequence[str],
        defaults: Mapping[str, str],
        *,
        timeout_s: Optional[float] = None,
        max_bytes: Optional[int] = None,
    ) -> None:
        self.http = http
        self.session = session
        self.entry_url = entry_url
        self.constant_names = tuple(constant_names)
        self.defaults = dict(defaults)
        self.timeout_s = float(timeout_s or settings.warmup_timeout_s)
        self.max_bytes = int(max_bytes or settings.warmup_max_bytes)
        self._task: Optional[asyncio.Task[None]] = None
        self.attempts = 0

    async def ensure_warmed_up(self) -> None:
        """최초 1회만 워밍업을 실행하고, 모든 호출자는 같은 결과를 기다린다."""
        if self._task is None:
            # await 없이 검사-대입하므로 같은 루프 안에서 원자적
            self._task = asyncio.ensure_future(self._run())
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        self.attempts += 1
        vendor = self.session.vendor
        logger.info(f"[WARMUP] {vendor} start: {self.entry_url}")
        text = ""
        try:
            text = await self.http.stream_text(
                self.entry_url,
                until=lambda acc: has_all_markers(acc, self.constant_names),
                timeout_s=self.timeout_s,
                max_bytes=self.max_bytes,
                headers={"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"},
            )
        except Exception as e:
            logger.warning(f"[WARMUP] {vendor} failed: {type(e).__name__}: {e} (defaults kept)")

        constants = extract_constants(text, self.constant_names, self.defaults)
        self.session.update_constants(constants)

        missing = [n for n in self.constant_names if constant_pattern(n).search(text) is None]
        if missing:
            logger.warning(f"[WARMUP] {vendor} constants not found {missing}, using defaults")
        bot_cookies = self.session.anti_bot_cookie_names()
        logger.info(
            f"[WARMUP] {vendor} done ✅ constants={self.session.constants} "
            f"anti_bot_cookies={bot_cookies or 'none'}"
        )
