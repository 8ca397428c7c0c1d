"""그리드 파서 공통 (식별 필드 필터 + 중복 제거 + 파생 필드)"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional, Protocol

from partsearch.core.logging import logger
from partsearch.crawlers.http_client import Document
from partsearch.engine.rows import CanonicalRow


DeriveFields = Callable[[CanonicalRow, str], Mapping[str, str]]


class GridParser(Protocol):
    def parse(self, document: Document) -> list[CanonicalRow]:
        ...


def finalize_rows(
    rows: Iterable[CanonicalRow],
    identity_captions: tuple[str, ...],
    *,
    derive: Optional[DeriveFields] = None,
    label: str = "grid",
) -> list[CanonicalRow]:
    """식별 값이 없는 행 제거, 같은 식별 값은 첫 행만 유지, 파생 필드 추가"""
    seen: set[str] = set()
    kept: list[CanonicalRow] = []
    dropped_missing = 0
    dropped_duplicate = 0
    for row in rows:
        identity = row.identity(identity_captions)
        if not identity:
            dropped_missing += 1
            continue
        key = identity.upper()
        if key in seen:
            dropped_duplicate += 1
            continue
        seen.add(key)
        if derive is not None:
            extra = {k: v for k, v in derive(row, identity).items() if v}
            if extra:
                row = row.with_fields(**extra)
        kept.append(row)
    if dropped_missing or dropped_duplicate:
        logger.debug(
            f"[PARSER] {label}: kept={len(kept)} dropped_no_identity={dropped_missing} "
            f"dropped_duplicate={dropped_duplicate}"
        )
    return kept
