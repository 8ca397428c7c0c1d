"""임베디드 HTML 테이블 그리드 파서 (TDK search_result 형식)

{"results": "<table>...</table>", "columns": [{"column_order": 20, "column_name": "Part No."}, ...]}

- 앞쪽 header_rows 개의 행은 장식용 헤더
- 각 행의 앞 leading_cols / 뒤 trailing_cols 개 셀은 체크박스·아이콘 등 장식
- 셀 i의 캡션은 columns[column_order == i * order_multiplier]
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from selectolax.parser import HTMLParser, Node

from partsearch.core.logging import logger
from partsearch.crawlers.http_client import Document
from partsearch.engine.rows import CanonicalRow
from partsearch.parsers.base import finalize_rows
from partsearch.utils.url import absolute_href


_WS_RE = re.compile(r"\s+")


def _node_text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return _WS_RE.sub(" ", node.text(separator=" ")).strip()


def build_header_map(columns: Any) -> dict[int, str]:
    if not isinstance(columns, list):
        return {}
    mapping: dict[int, str] = {}
    for col in columns:
        if not isinstance(col, Mapping):
            continue
        try:
            order = int(col.get("column_order"))
        except (TypeError, ValueError):
            continue
        name = str(col.get("column_name") or "").strip()
        if name:
            mapping[order] = name
    return mapping


class HtmlTableGridParser:
    def __init__(
        self,
        base_url: str,
        *,
        identity_caption: str = "Part No.",
        document_caption: str = "Catalog / Data Sheet",
        header_rows: int = 2,
        footer_rows: int = 0,
        leading_cols: int = 2,
        trailing_cols: int = 2,
        order_multiplier: int = 10,
        html_key: str = "results",
        columns_key: str = "columns",
        label: str = "html-grid",
    ) -> None:
        self.base_url = base_url
        self.identity_caption = identity_caption
        self.document_caption = document_caption
        self.header_rows = header_rows
        self.footer_rows = footer_rows
        self.leading_cols = leading_cols
        self.trailing_cols = trailing_cols
        self.order_multiplier = order_multiplier
        self.html_key = html_key
        self.columns_key = columns_key
        self.label = label

    def parse(self, document: Document) -> list[CanonicalRow]:
        try:
            return self._parse(document)
        except Exception as e:
            logger.warning(f"[PARSER] {self.label} structure mismatch: {type(e).__name__}: {e}")
            return []

    def _parse(self, document: Document) -> list[CanonicalRow]:
        html = document.get(self.html_key) if document else None
        if not isinstance(html, str) or not html.strip():
            return []
        headers = build_header_map(document.get(self.columns_key))

        trs = HTMLParser(html).css("tr")
        end = len(trs) - self.footer_rows if self.footer_rows else len(trs)
        rows: list[CanonicalRow] = []
        for tr in trs[self.header_rows:end]:
            tds = tr.css("td")
            if not tds:
                continue
            fields: dict[str, str] = {}
            link = ""
            for col in range(self.leading_cols, len(tds) - self.trailing_cols):
                caption = headers.get(col * self.order_multiplier, f"col_{col}")
                td = tds[col]
                if caption.lower() == self.identity_caption.lower():
                    value, link = self._identity_cell(td)
                    caption = self.identity_caption
                elif caption.lower() == self.document_caption.lower():
                    value = self._document_cell(td)
                    caption = self.document_caption
                else:
                    value = _node_text(td)
                if value:
                    fields[caption] = value
            row = CanonicalRow(fields)
            if link:
                row = row.with_fields(url=link)
            rows.append(row)

        return finalize_rows(rows, (self.identity_caption,), label=self.label)

    def _identity_cell(self, td: Node) -> tuple[str, str]:
        anchor = td.css_first("a")
        if anchor is None:
            return _node_text(td), ""
        href = (anchor.attributes or {}).get("href") or ""
        return _node_text(anchor), absolute_href(self.base_url, href)

    def _document_cell(self, td: Node) -> str:
        for anchor in td.css("a"):
            href = ((anchor.attributes or {}).get("href") or "").strip()
            if href.lower().split("?", 1)[0].endswith(".pdf"):
                return absolute_href(self.base_url, href)
        return ""
