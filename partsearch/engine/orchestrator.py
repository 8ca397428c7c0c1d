"""Search Orchestrator - 벤더 검색 파이프라인

모든 연산이 같은 모양을 따릅니다:
    카테고리 결정 → 필터 인코딩/요청 조립 → (워밍업) → 실행 → 파싱 → 후처리

벤더 측 장애는 빈 결과로 강등되고, 설정/입력 오류만 예외로 전파됩니다.
"""

from __future__ import annotations

import time
from typing import Any, Mapping, Optional

from partsearch.core.exceptions import UnsupportedOperationException
from partsearch.core.logging import logger
from partsearch.crawlers.http_client import EMPTY_DOCUMENT, Document
from partsearch.engine.encoder import EncodedQuery
from partsearch.engine.filters import parse_filter_map
from partsearch.engine.rows import CanonicalRow
from partsearch.engine.vendor import (
    ParametricQuery,
    RequestMethod,
    SearchKind,
    VendorRequest,
    VendorStrategy,
)
from partsearch.utils.text import clean_identifier


MPN_FILTER_KEY = "mpn"
DETAILS_FILTER_KEY = "details"


class SearchOrchestrator:
    """벤더 하나에 대한 검색 엔진 (요청 간 공유되는 장수 객체)"""

    def __init__(self, strategy: VendorStrategy) -> None:
        if strategy is None:
            raise ValueError("strategy must not be None")
        self.strategy = strategy

    @property
    def vendor(self) -> str:
        return self.strategy.name

    def _require(self, kind: SearchKind) -> None:
        if not self.strategy.supports(kind):
            raise UnsupportedOperationException(self.vendor, kind.value)

    async def search_by_mpn(self, mpn: str) -> list[CanonicalRow]:
        """부품번호 검색 (벤더 자체 페이지 상한 적용)"""
        self._require(SearchKind.MPN)
        identifier = clean_identifier(mpn)
        if not identifier:
            logger.info(f"[SEARCH] {self.vendor} mpn search skipped: empty identifier")
            return []

        started = time.perf_counter()
        code = None
        if self.strategy.resolver is not None:
            code = await self.strategy.resolver.resolve_for_part(identifier)

        await self._warm_up()
        request = self.strategy.requests.mpn_request(code, identifier)
        doc = await self._execute(request)
        rows = self.strategy.grid_parser.parse(doc)
        logger.info(
            f"[SEARCH] {self.vendor} mpn={identifier} cate={code} rows={len(rows)} "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)"
        )
        return rows

    async def search_by_parameters(
        self,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        mpn: Optional[str] = None,
        details: Optional[str] = None,
        max_results: int = 100,
    ) -> list[CanonicalRow]:
        """카테고리 + 필터 검색, 결과는 max_results로 절단

        filters 안의 "mpn" / "details" 키는 각각 내장 MPN, 자유 서술 필터로 취급합니다.

        Raises:
            InvalidFilterException: 필터 값 모양 오류 (I/O 전에 검증)
            CategoryMappingException: 카테고리 결정 불가 + 기본값 없음
        """
        self._require(SearchKind.PARAMETRIC)
        if max_results < 1:
            raise ValueError(f"max_results must be >= 1: {max_results}")

        remaining = dict(filters or {})
        embedded_mpn = remaining.pop(MPN_FILTER_KEY, None)
        embedded_details = remaining.pop(DETAILS_FILTER_KEY, None)
        identifier = clean_identifier(mpn if mpn else (str(embedded_mpn) if embedded_mpn is not None else ""))
        free_text = details if details else (str(embedded_details) if embedded_details is not None else None)
        validated = parse_filter_map(remaining)

        started = time.perf_counter()
        code = None
        if self.strategy.resolver is not None:
            code = await self.strategy.resolver.resolve(
                part_number=identifier or None, category=category, subcategory=subcategory
            )

        encoder = self.strategy.encoder
        query: EncodedQuery = encoder.encode(code, validated)
        if free_text:
            query = query.merged(await encoder.encode_details(code, free_text))
        if query.skipped:
            logger.warning(f"[SEARCH] {self.vendor} filters ignored (no field mapping): {list(query.skipped)}")
        logger.debug(f"[SEARCH] {self.vendor} {query.grammar.name}={query.composite()}")

        await self._warm_up()
        request = self.strategy.requests.parametric_request(
            ParametricQuery(
                category_code=code,
                category=category,
                subcategory=subcategory,
                identifier=identifier,
                query=query,
                max_results=max_results,
            )
        )
        doc = await self._execute(request)
        rows = self.strategy.grid_parser.parse(doc)[:max_results]
        logger.info(
            f"[SEARCH] {self.vendor} parametric cate={code} clauses={len(query.clauses)} rows={len(rows)} "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)"
        )
        return rows

    async def search_by_cross_reference(
        self,
        competitor_mpn: str,
        category_path: Optional[str] = None,
    ) -> dict[str, list[CanonicalRow]]:
        """경쟁사 부품번호 → {"competitor": [...], "<vendor>": [...]}"""
        self._require(SearchKind.CROSS_REFERENCE)
        sections = self.strategy.cross_ref_sections
        identifier = clean_identifier(competitor_mpn, strip_hash=True)
        if not identifier:
            return {name: [] for name in sections}

        started = time.perf_counter()
        resolver = self.strategy.cross_ref_resolver
        builder = self.strategy.cross_ref_requests
        if resolver is None or builder is None:
            raise UnsupportedOperationException(self.vendor, SearchKind.CROSS_REFERENCE.value)
        code = await resolver.resolve(part_number=identifier, category=category_path)

        await self._warm_up()
        request = builder.cross_ref_request(code, identifier)
        doc = await self._execute(request)
        result = {name: parser.parse(doc) for name, parser in sections.items()}
        counts = {name: len(rows) for name, rows in result.items()}
        logger.info(
            f"[SEARCH] {self.vendor} cross-ref {identifier} cate={code} sections={counts} "
            f"({(time.perf_counter() - started) * 1000:.0f}ms)"
        )
        return result

    async def _warm_up(self) -> None:
        if self.strategy.warmup is not None:
            await self.strategy.warmup.ensure_warmed_up()

    async def _execute(self, request: VendorRequest) -> Document:
        http = self.strategy.http
        if request.method == RequestMethod.GET:
            return await http.get(request.url, headers=request.headers)
        if request.method == RequestMethod.POST_FORM:
            return await http.post_form(request.url, request.form, headers=request.headers)
        if request.method == RequestMethod.POST_JSON:
            return await http.post_json(request.url, request.json_body or {}, headers=request.headers)
        logger.warning(f"[SEARCH] {self.vendor} unknown request method {request.method}")
        return EMPTY_DOCUMENT

    async def close(self) -> None:
        await self.strategy.close()
