"""URL 조립 유틸"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple
from urllib.parse import urlencode, urljoin, urlparse


# scon/fn 절의 구분자는 벤더가 인코딩되지 않은 형태로 기대한다
_QUERY_SAFE = ";|:"


def is_absolute_http_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def join_url(base_url: str, path: str) -> str:
    """base URL + path. path가 절대 URL이면 그대로 사용."""
    if is_absolute_http_url(path):
        return path
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def build_url(base_url: str, path: str, params: Iterable[Tuple[str, str]] = ()) -> str:
    """반복 파라미터(scon 등)를 보존하는 쿼리스트링 조립"""
    url = join_url(base_url, path)
    pairs = [(k, "" if v is None else str(v)) for k, v in params]
    if not pairs:
        return url
    sep = "&" if "?" in url else "?"
    return url + sep + urlencode(pairs, safe=_QUERY_SAFE)


def absolute_href(base_url: str, href: Optional[str]) -> str:
    if not href:
        return ""
    return urljoin(base_url.rstrip("/") + "/", href.strip())
