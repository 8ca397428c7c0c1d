"""JSON 헤더 그리드 파서 (Murata PsdispRest / SearchCrossReference 형식)

{
  "Result": {
    "header": ["partnumber:Part Number:1:...", "capacitance:Capacitance:...", ...],
    "data": {"products": [{"Value": ["GRM0115C1C100GE01#", "10pF", ...]}, ...]}
  }
}
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from partsearch.core.logging import logger
from partsearch.crawlers.http_client import Document
from partsearch.engine.rows import CanonicalRow
from partsearch.parsers.base import DeriveFields, finalize_rows
from partsearch.utils.text import html_to_text


def header_caption(raw: Any) -> str:
    """"field:Caption:..." 에서 두 번째 구간"""
    text = str(raw or "")
    parts = text.split(":", 3)
    if len(parts) > 1 and parts[1].strip():
        return parts[1].strip()
    return text.strip()


def _descend(node: Any, path: Sequence[str]) -> Any:
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


class JsonHeaderGridParser:
    def __init__(
        self,
        section_path: Sequence[str] = ("Result",),
        identity_captions: Sequence[str] = ("Part Number",),
        derive: Optional[DeriveFields] = None,
        label: str = "json-grid",
    ) -> None:
        self.section_path = tuple(section_path)
        self.identity_captions = tuple(identity_captions)
        self.derive = derive
        self.label = label

    def parse(self, document: Document) -> list[CanonicalRow]:
        try:
            return self._parse(document)
        except Exception as e:
            logger.warning(f"[PARSER] {self.label} structure mismatch: {type(e).__name__}: {e}")
            return []

    def _parse(self, document: Document) -> list[CanonicalRow]:
        section = _descend(document, self.section_path)
        if not isinstance(section, Mapping):
            return []
        header = section.get("header")
        products = _descend(section, ("data", "products"))
        if not isinstance(header, list) or not isinstance(products, list):
            return []

        captions = [header_caption(h) for h in header]
        rows: list[CanonicalRow] = []
        for product in products:
            values = product.get("Value") if isinstance(product, Mapping) else product
            if not isinstance(values, list):
                continue
            fields: dict[str, str] = {}
            for caption, raw in zip(captions, values):
                if raw is None or not caption:
                    continue
                text = html_to_text(str(raw))
                if text:
                    fields[caption] = text
            rows.append(CanonicalRow(fields))

        return finalize_rows(rows, self.identity_captions, derive=self.derive, label=self.label)
