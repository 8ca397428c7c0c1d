"""JSON 부품 목록 파서 (KEMET search.products.json 형식)"""

from __future__ import annotations

from typing import Any, Mapping

from partsearch.core.logging import logger
from partsearch.crawlers.http_client import Document
from partsearch.engine.rows import CanonicalRow
from partsearch.parsers.base import finalize_rows


def _flag(value: Any) -> str:
    if isinstance(value, str):
        return "true" if value.strip().lower() == "true" else "false"
    return "true" if bool(value) else "false"


class PartsListParser:
    def __init__(self, list_key: str = "detectedUniqueParts", identity_caption: str = "MPN", label: str = "parts-list") -> None:
        self.list_key = list_key
        self.identity_caption = identity_caption
        self.label = label

    def parse(self, document: Document) -> list[CanonicalRow]:
        parts = document.get(self.list_key) if document else None
        if not isinstance(parts, list):
            return []
        rows: list[CanonicalRow] = []
        for part in parts:
            if not isinstance(part, Mapping):
                continue
            try:
                rows.append(self._row(part))
            except Exception as e:
                logger.warning(f"[PARSER] {self.label} skipped malformed part: {type(e).__name__}: {e}")
        return finalize_rows(rows, (self.identity_caption,), label=self.label)

    def _row(self, part: Mapping[str, Any]) -> CanonicalRow:
        fields: dict[str, str] = {}
        pn = part.get("displayPn")
        if pn is not None and str(pn).strip():
            fields[self.identity_caption] = str(pn).strip()
        fields["obsolete"] = _flag(part.get("obsolete", False))
        fields["rohsExceptions"] = _flag(part.get("hasRoHSExceptions", False))

        for param in part.get("parameterValues") or []:
            if not isinstance(param, Mapping):
                continue
            name = str(param.get("parameterName") or "").strip()
            if not name:
                continue
            values = [
                str(v.get("formattedValue")).strip()
                for v in (param.get("parameterValues") or [])
                if isinstance(v, Mapping) and v.get("formattedValue") not in (None, "")
            ]
            if values:
                fields[name] = ", ".join(values)
        return CanonicalRow(fields)
