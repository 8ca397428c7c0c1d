"""부품번호/캡션 문자열 유틸 (순수 함수)"""

from __future__ import annotations

import re
from typing import Optional

from selectolax.parser import HTMLParser


_NON_ALNUM_RE = re.compile(r"[^A-Z0-9]")
_WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")

PREFIX_LENGTH = 3


def clean_identifier(value: Optional[str], *, strip_hash: bool = False) -> str:
    """검색용 식별자 정리 (trim, 필요 시 '#' 제거)"""
    if not value:
        return ""
    cleaned = value.strip()
    if strip_hash:
        cleaned = cleaned.replace("#", "").strip()
    return cleaned


def normalize_key(value: Optional[str]) -> str:
    """캐시 키용 정규화 (trim + 대문자)"""
    return (value or "").strip().upper()


def sanitize_identifier(value: Optional[str]) -> str:
    """대문자화 후 영숫자 외 문자 제거"""
    return _NON_ALNUM_RE.sub("", (value or "").upper())


def part_prefix(value: Optional[str], length: int = PREFIX_LENGTH) -> str:
    """prefix 테이블 조회용 접두사.

    정리된 식별자가 length보다 짧으면 전체 문자열을 그대로 사용합니다.
    """
    sanitized = sanitize_identifier(value)
    return sanitized[:length]


def caption_tokens(caption: str) -> frozenset[str]:
    """순서 무관 비교용 단어 집합 ("DC Rated Voltage" == "Rated Voltage DC")"""
    return frozenset(m.group(0) for m in _WORD_RE.finditer(caption.lower()))


def html_to_text(raw: Optional[str]) -> str:
    """셀 값의 HTML 제거 (<br/> → ", ")"""
    if not raw:
        return ""
    if "<" not in raw:
        return _WS_RE.sub(" ", raw).strip()
    replaced = _BR_RE.sub(", ", raw)
    body = HTMLParser(f"<div>{replaced}</div>").body
    text = body.text(separator="") if body is not None else ""
    return _WS_RE.sub(" ", text).strip()
