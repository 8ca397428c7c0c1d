"""벤더 HTTP 실행기 (curl_cffi)

- 벤더 엔진 인스턴스마다 AsyncSession 하나를 만들어 수명 동안 재사용합니다.
- I/O 실패(타임아웃, 연결 거부, 비-2xx, JSON 디코딩 실패, 풀 대기 초과)는 예외 대신
  EMPTY_DOCUMENT를 반환합니다. 호출자는 이를 '데이터 없음'으로 취급합니다.
- 모든 응답의 쿠키는 SessionContext로 병합되고, 모든 요청은 쿠키 전체를 재전송합니다.
"""

from __future__ import annotations

import asyncio
import codecs
import json
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlencode

from curl_cffi.requests import AsyncSession

from partsearch.core.config import settings
from partsearch.core.exceptions import VendorConfigurationException
from partsearch.core.logging import logger
from partsearch.engine.session import SessionContext
from partsearch.utils.url import is_absolute_http_url


Document = Mapping[str, Any]

# 빈 문서 센티넬 (불변)
EMPTY_DOCUMENT: Document = MappingProxyType({})

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"


def _extract_cookies(resp: Any) -> Dict[str, str]:
    raw = getattr(resp, "cookies", None)
    if not raw:
        return {}
    jar = getattr(raw, "jar", None)
    if jar is not None:
        return {c.name: c.value for c in jar if c.value is not None}
    return {str(k): str(v) for k, v in dict(raw).items()}


def _short(url: str, limit: int = 160) -> str:
    return url if len(url) <= limit else url[:limit] + "..."


class HttpExecutor:
    def __init__(
        self,
        vendor: str,
        base_url: str,
        session: SessionContext,
        *,
        timeout_s: Optional[float] = None,
        connect_timeout_s: Optional[float] = None,
        max_connections: Optional[int] = None,
        acquire_timeout_s: Optional[float] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
        session_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        if not is_absolute_http_url(base_url):
            raise VendorConfigurationException(vendor, f"unresolvable base URL {base_url!r}")

        self.vendor = vendor
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout_s = float(timeout_s or settings.http_timeout_s)
        self.connect_timeout_s = float(connect_timeout_s or settings.http_connect_timeout_s)
        self.max_connections = int(max_connections or settings.http_max_connections)
        self.acquire_timeout_s = float(acquire_timeout_s or settings.http_pool_acquire_timeout_s)
        self._extra_headers = dict(extra_headers or {})
        self._session_factory = session_factory

        self._lock = asyncio.Lock()
        self._client: Optional[Any] = None
        self._slots: Optional[asyncio.Semaphore] = None

    async def _ensure_client(self) -> Any:
        async with self._lock:
            if self._client is not None:
                return self._client
            if self._session_factory is not None:
                self._client = self._session_factory()
            else:
                self._client = AsyncSession(
                    impersonate=settings.http_impersonate,
                    headers=self.default_headers(),
                    allow_redirects=True,
                    max_clients=self.max_connections,
                    trust_env=False,
                )
            self._slots = asyncio.Semaphore(self.max_connections)
            return self._client

    def default_headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": settings.http_user_agent,
            "Accept": "application/json, text/plain, */*",
            "Accept-Encoding": "br, gzip, deflate",
            "Accept-Language": "en-US,en;q=0.5",
            "X-Requested-With": "XMLHttpRequest",
            "Sec-CH-UA": '"Chromium";v="125", "Google Chrome";v="125", "Not.A/Brand";v="24"',
            "Sec-CH-UA-Mobile": "?0",
            "Sec-CH-UA-Platform": '"Windows"',
        }
        headers.update(self._extra_headers)
        return headers

    def _headers_for(self, headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
        merged = self.default_headers()
        if headers:
            merged.update(headers)
        return merged

    def absorb_cookies(self, resp: Any) -> None:
        try:
            names = self.session.merge_cookies(_extract_cookies(resp))
        except Exception as e:
            logger.info(f"[HTTP] {self.vendor} cookie extraction failed: {type(e).__name__}: {e}")
            return
        if names:
            logger.debug(f"[HTTP] {self.vendor} cookies updated: {names}")

    async def _acquire_slot(self) -> Optional[asyncio.Semaphore]:
        """획득한 세마포어 반환 (close 이후이거나 대기 시간 초과면 None)"""
        slots = self._slots
        if slots is None:
            logger.warning(f"[HTTP] {self.vendor} executor closed, request skipped")
            return None
        try:
            await asyncio.wait_for(slots.acquire(), timeout=self.acquire_timeout_s)
            return slots
        except asyncio.TimeoutError:
            logger.warning(
                f"[HTTP] {self.vendor} pool acquire timed out after {self.acquire_timeout_s:.1f}s "
                f"(max_connections={self.max_connections})"
            )
            return None

    async def _request(self, method: str, url: str, **kwargs: Any) -> Document:
        client = await self._ensure_client()
        slots = await self._acquire_slot()
        if slots is None:
            return EMPTY_DOCUMENT

        headers = self._headers_for(kwargs.pop("headers", None))
        try:
            logger.info(f"[HTTP] {self.vendor} {method} {_short(url)} (timeout={self.timeout_s:.0f}s)")
            resp = await asyncio.wait_for(
                client.request(
                    method,
                    url,
                    headers=headers,
                    cookies=self.session.cookie_snapshot(),
                    timeout=(self.connect_timeout_s, self.timeout_s),
                    **kwargs,
                ),
                timeout=self.timeout_s,
            )
        except Exception as e:
            logger.warning(f"[HTTP] {self.vendor} {method} failed: {type(e).__name__}: {repr(e)}")
            return EMPTY_DOCUMENT
        finally:
            slots.release()

        self.absorb_cookies(resp)
        return self._decode(method, url, resp)

    def _decode(self, method: str, url: str, resp: Any) -> Document:
        status = getattr(resp, "status_code", 0) or 0
        if not 200 <= status < 300:
            if status == 404:
                logger.info(f"[HTTP] {self.vendor} {method} 404 (no data) {_short(url, 80)}")
            else:
                logger.warning(f"[HTTP] {self.vendor} {method} non-2xx status: {status}")
            return EMPTY_DOCUMENT

        body = getattr(resp, "content", None)
        if body is None:
            body = getattr(resp, "text", "") or ""
        if not body:
            logger.warning(f"[HTTP] {self.vendor} {method} empty body (status={status})")
            return EMPTY_DOCUMENT
        try:
            data = json.loads(body)
        except (ValueError, TypeError) as e:
            logger.warning(f"[HTTP] {self.vendor} {method} JSON decode failed: {type(e).__name__}: {e}")
            return EMPTY_DOCUMENT
        if not isinstance(data, dict):
            logger.warning(f"[HTTP] {self.vendor} {method} unexpected JSON root: {type(data).__name__}")
            return EMPTY_DOCUMENT
        return data

    async def get(self, url: str, *, headers: Optional[Mapping[str, str]] = None) -> Document:
        return await self._request("GET", url, headers=headers)

    async def post_form(
        self,
        url: str,
        form: Iterable[Tuple[str, str]],
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Document:
        merged = {"Content-Type": FORM_CONTENT_TYPE}
        merged.update(headers or {})
        return await self._request("POST", url, headers=merged, data=urlencode(list(form), safe=";|:"))

    async def post_json(
        self,
        url: str,
        body: Mapping[str, Any],
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Document:
        merged = {"Content-Type": "application/json"}
        merged.update(headers or {})
        return await self._request("POST", url, headers=merged, json=dict(body))

    async def stream_text(
        self,
        url: str,
        *,
        until: Callable[[str], bool],
        timeout_s: float,
        max_bytes: int,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        """GET 응답을 조건이 만족될 때까지만 스트리밍해서 텍스트 반환.

        타임아웃/오류 시에도 그때까지 누적된 텍스트를 반환합니다 (없으면 빈 문자열).
        """
        client = await self._ensure_client()
        parts: list[str] = []

        async def _consume() -> None:
            decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
            received = 0
            async with client.stream(
                "GET",
                url,
                headers=self._headers_for(headers),
                cookies=self.session.cookie_snapshot(),
                timeout=(self.connect_timeout_s, timeout_s),
            ) as resp:
                self.absorb_cookies(resp)
                status = getattr(resp, "status_code", 0) or 0
                if not 200 <= status < 300:
                    logger.warning(f"[HTTP] {self.vendor} stream non-2xx status: {status}")
                    return
                async for chunk in resp.aiter_content():
                    if not chunk:
                        continue
                    received += len(chunk)
                    parts.append(decoder.decode(chunk) if isinstance(chunk, bytes) else str(chunk))
                    if until("".join(parts)) or received >= max_bytes:
                        return

        slots = await self._acquire_slot()
        if slots is None:
            return ""
        try:
            logger.info(f"[HTTP] {self.vendor} STREAM {_short(url)} (timeout={timeout_s:.0f}s)")
            await asyncio.wait_for(_consume(), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"[HTTP] {self.vendor} stream timed out after {timeout_s:.0f}s")
        except Exception as e:
            logger.warning(f"[HTTP] {self.vendor} stream failed: {type(e).__name__}: {repr(e)}")
        finally:
            slots.release()
        return "".join(parts)

    async def close(self) -> None:
        async with self._lock:
            if self._client is None:
                return
            try:
                await self._client.close()
            except Exception as e:
                logger.info(f"[HTTP] {self.vendor} close failed: {type(e).__name__}: {e}")
            self._client = None
            self._slots = None
